"""Symbolic Partials Package

Analytic partial derivatives of flat expression trees with pluggable
operators and derivative rules.
"""

from .expression_tree import (
  Expression, Node, VariableNode, ConstantNode, ExpressionNode,
  Operator, OperatorRegistry, OpType, parse, flatten, FlatExpression,
  to_sympy, lambdify
)
from .operators import make_default_operators
from .differentiation import partial, partial_iter, Operand, unary_chain, constant
from .errors import (
  SymbolicPartialsError, DifferentiationError, UnsupportedOperatorError,
  OperatorArityError, RegistryMismatchError, RegistryMissingError,
  MalformedTreeError, VariableIndexError, ExpressionParseError, EvaluationError
)
from .logging_system import LogLevel, configure_logging, set_log_level, get_logger

__version__ = "0.1.0"
__all__ = [
  "Expression", "Node", "VariableNode", "ConstantNode", "ExpressionNode",
  "Operator", "OperatorRegistry", "OpType", "make_default_operators",
  "parse", "flatten", "FlatExpression", "to_sympy", "lambdify",
  "partial", "partial_iter", "Operand", "unary_chain", "constant",
  "SymbolicPartialsError", "DifferentiationError", "UnsupportedOperatorError",
  "OperatorArityError", "RegistryMismatchError", "RegistryMissingError",
  "MalformedTreeError", "VariableIndexError", "ExpressionParseError", "EvaluationError",
  "LogLevel", "configure_logging", "set_log_level", "get_logger"
]
