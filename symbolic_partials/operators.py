"""
Default operator catalog.

make_default_operators() assembles the built-in operators together with their
numeric functions, precedences and derivative rules. Registries are cached per
numeric type so that trees parsed separately share one registry instance.
"""

from functools import lru_cache
from typing import Any, List

import numpy as np

from .differentiation.rules import BINARY_RULES, UNARY_RULES
from .expression_tree.core.operators import (
    BINARY_FUNCS, DEFAULT_PRECEDENCE, UNARY_FUNCS, Operator, OperatorRegistry
)


def make_default_operators(dtype: Any = np.float64) -> OperatorRegistry:
    """
    Registry of all built-in operators for the given numpy floating type.

    '+' and '-' are registered once with both a binary and a unary function.
    Repeated calls with the same type return the same registry.
    """
    return _default_operators(np.dtype(dtype).type)


@lru_cache(maxsize=None)
def _default_operators(scalar_type) -> OperatorRegistry:
    operators: List[Operator] = []
    for symbol, func in BINARY_FUNCS.items():
        operators.append(Operator(
            symbol,
            binary=func,
            unary=UNARY_FUNCS.get(symbol),
            prio=DEFAULT_PRECEDENCE[symbol],
            binary_rule=BINARY_RULES.get(symbol),
            unary_rule=UNARY_RULES.get(symbol) if symbol in UNARY_FUNCS else None,
        ))
    for symbol, func in UNARY_FUNCS.items():
        if symbol in BINARY_FUNCS:
            continue
        operators.append(Operator(symbol, unary=func, unary_rule=UNARY_RULES.get(symbol)))
    return OperatorRegistry(operators, dtype=scalar_type)
