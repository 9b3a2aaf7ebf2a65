"""Symbolic partial derivatives of expression trees."""

from .engine import partial, partial_iter
from .rules import Operand, BINARY_RULES, UNARY_RULES, unary_chain, constant

__all__ = ['partial', 'partial_iter', 'Operand', 'BINARY_RULES', 'UNARY_RULES', 'unary_chain', 'constant']
