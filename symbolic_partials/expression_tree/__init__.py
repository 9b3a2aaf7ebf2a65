"""Expression Tree Module

Flat expression trees: leaves joined by a binary operator chain and wrapped
in a unary operator chain.
"""

from .expression import Expression
from .core.node import Node, VariableNode, ConstantNode, ExpressionNode
from .core.operators import (
    OpType, BINARY_OP_MAP, UNARY_OP_MAP, DEFAULT_PRECEDENCE, Operator, OperatorRegistry
)
from .core.reduction import prioritized_indices, reduce_by_priority
from .parser import ExpressionParser, parse
from .optimization import FlatExpression, flatten
from .utils import ExpressionValidator, to_sympy, lambdify

__all__ = [
    "Expression",
    "Node", "VariableNode", "ConstantNode", "ExpressionNode",
    "OpType", "BINARY_OP_MAP", "UNARY_OP_MAP", "DEFAULT_PRECEDENCE",
    "Operator", "OperatorRegistry",
    "prioritized_indices", "reduce_by_priority",
    "ExpressionParser", "parse",
    "FlatExpression", "flatten",
    "ExpressionValidator", "to_sympy", "lambdify"
]
