"""Utilities for expression trees."""

from .sympy_utils import to_sympy, lambdify, sympy_symbols, latex_representation
from .tree_utils import (
    get_all_leaves, iter_expressions, calculate_tree_depth, tree_size,
    get_constants, get_variables, get_binary_ops, get_unary_ops,
    get_operator_usage_counts
)
from .validator import ExpressionValidator

__all__ = [
    'to_sympy', 'lambdify', 'sympy_symbols', 'latex_representation',
    'get_all_leaves', 'iter_expressions', 'calculate_tree_depth', 'tree_size',
    'get_constants', 'get_variables', 'get_binary_ops', 'get_unary_ops',
    'get_operator_usage_counts',
    'ExpressionValidator'
]
