"""Core expression tree components."""

from .node import Node, VariableNode, ConstantNode, ExpressionNode
from .operators import (
    OpType, FIRST_UNARY_OP, BINARY_OP_MAP, UNARY_OP_MAP, DEFAULT_PRECEDENCE,
    BINARY_FUNCS, UNARY_FUNCS, Operator, OperatorRegistry
)
from .reduction import prioritized_indices, reduce_by_priority

__all__ = [
    'Node', 'VariableNode', 'ConstantNode', 'ExpressionNode',
    'OpType', 'FIRST_UNARY_OP', 'BINARY_OP_MAP', 'UNARY_OP_MAP', 'DEFAULT_PRECEDENCE',
    'BINARY_FUNCS', 'UNARY_FUNCS', 'Operator', 'OperatorRegistry',
    'prioritized_indices', 'reduce_by_priority'
]
