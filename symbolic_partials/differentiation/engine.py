"""
Recursive differentiation of flat expression trees.

partial() walks the tree shape: single leaves have trivial derivatives,
binary chains are folded in priority order on (value, derivative) pairs using
the binary rule of each operator, and a unary chain contributes one outer
factor per operator, evaluated at that operator's own argument. Nothing
is cached between calls; every call re-derives from scratch.
"""

import numbers
from typing import Iterable, List, Optional

from ..errors import (
    MalformedTreeError, RegistryMismatchError, RegistryMissingError, UnsupportedOperatorError,
    VariableIndexError
)
from ..expression_tree.core.node import ConstantNode, ExpressionNode, Node, VariableNode
from ..expression_tree.core.operators import OperatorRegistry
from ..expression_tree.core.reduction import reduce_by_priority
from ..expression_tree.expression import Expression
from ..expression_tree.utils.tree_utils import tree_size
from ..expression_tree.utils.validator import ExpressionValidator
from ..logging_system import LogLevel, get_logger, log_debug, log_detail
from .rules import BinaryRule, Operand, UnaryRule


def partial(var_index: int, expression: Expression, ops: Optional[OperatorRegistry] = None) -> Expression:
    """
    Partial derivative of ``expression`` with respect to the variable of index ``var_index``.

    Args:
        var_index: Index of the variable to differentiate by
        expression: Tree to differentiate; it is not modified
        ops: Registry providing operators and derivative rules; defaults to the tree's own

    Returns:
        A new expression governed by the same registry, with the input's variable names

    Raises:
        RegistryMissingError: neither ``ops`` nor the tree provide a registry
        RegistryMismatchError: the tree, or a nested tree, uses another registry than ``ops``
        VariableIndexError: ``var_index`` is negative or outside the declared variables
        UnsupportedOperatorError: an operator has no derivative rule
    """
    registry = ops if ops is not None else expression.registry
    if registry is None:
        raise RegistryMissingError("partial derivatives need an operator registry")
    if expression.registry is not None and expression.registry is not registry:
        raise RegistryMismatchError("expression is governed by a different operator registry than the one given")
    ExpressionValidator.validate(expression, registry)
    _check_var_index(var_index, expression)

    result = _partial(var_index, expression.with_registry(registry), registry)
    result = result.with_var_names(expression.var_names)
    log_detail(f"partial d/d{_var_label(var_index, expression)}: "
               f"(size {tree_size(expression)} -> {tree_size(result)})")
    return result


def partial_iter(expression: Expression, var_indices: Iterable[int],
                 ops: Optional[OperatorRegistry] = None) -> Expression:
    """Apply partial() once per index, in order; the first failure propagates"""
    result = expression
    for var_index in var_indices:
        result = partial(var_index, result, ops)
    return result


def _check_var_index(var_index, expression: Expression):
    n_vars = len(expression.var_names) if expression.var_names is not None else None
    if not isinstance(var_index, numbers.Integral) or var_index < 0:
        raise VariableIndexError(var_index, n_vars if n_vars is not None else 0)
    if n_vars is not None and var_index >= n_vars:
        raise VariableIndexError(var_index, n_vars)


def _var_label(var_index: int, expression: Expression) -> str:
    if expression.var_names is not None:
        return expression.var_names[var_index]
    return f"x{var_index}"


def _partial(var_index: int, expression: Expression, ops: OperatorRegistry) -> Expression:
    inner = _partial_inner(var_index, expression, ops)
    if not expression.unary_ops:
        return inner
    factors = _outer_factors(expression, ops)
    outer = factors[0]
    for factor in factors[1:]:
        outer = outer * factor
    return inner * outer


def _partial_inner(var_index: int, expression: Expression, ops: OperatorRegistry) -> Expression:
    """Derivative of the binary part of ``expression``, ignoring its unary chain"""
    if len(expression.leaves) == 1:
        return _partial_leaf(var_index, expression.leaves[0], ops)

    rules = {op.symbol: _binary_rule(op.symbol, ops) for op in expression.bin_ops}
    operands = [Operand(Expression.from_leaf(leaf, ops), _partial_leaf(var_index, leaf, ops))
                for leaf in expression.leaves]

    verbose = get_logger().is_enabled(LogLevel.VERBOSE)

    def fold(op, f: Operand, g: Operand) -> Operand:
        if verbose:
            log_debug(f"fold '{op.symbol}' of {f.value.unparse()} and {g.value.unparse()}")
        return Operand(Expression.combine(op.symbol, f.value, g.value), rules[op.symbol](f, g, ops))

    return reduce_by_priority(operands, expression.bin_ops, fold).derivative


def _partial_leaf(var_index: int, leaf: Node, ops: OperatorRegistry) -> Expression:
    if isinstance(leaf, ConstantNode):
        return Expression.from_number(0, ops)
    if isinstance(leaf, VariableNode):
        return Expression.from_number(1 if leaf.index == var_index else 0, ops)
    if isinstance(leaf, ExpressionNode):
        nested = leaf.expression
        if nested.registry is None:
            nested = nested.with_registry(ops)
        elif nested.registry is not ops:
            raise RegistryMismatchError("nested expression is governed by a different operator registry")
        return _partial(var_index, nested, ops)
    raise MalformedTreeError(f"leaf of unexpected type {type(leaf).__name__}")


def _outer_factors(expression: Expression, ops: OperatorRegistry) -> List[Expression]:
    """One factor u_j'(u_{j+1}(...u_k(v))) per unary operator u_j, outermost first"""
    rules = [_unary_rule(op.symbol, ops) for op in expression.unary_ops]
    factors = []
    for j, rule in enumerate(rules):
        argument = expression.with_unary_ops(expression.unary_ops[j + 1:])
        factors.append(rule(argument, ops))
    return factors


def _binary_rule(symbol: str, ops: OperatorRegistry) -> BinaryRule:
    op = ops.find(symbol)
    if op is None:
        raise UnsupportedOperatorError(symbol, "operator needed for partial derivative is not in the registry")
    if op.binary_rule is None:
        raise UnsupportedOperatorError(symbol, "no binary derivative rule registered")
    return op.binary_rule


def _unary_rule(symbol: str, ops: OperatorRegistry) -> UnaryRule:
    op = ops.find(symbol)
    if op is None:
        raise UnsupportedOperatorError(symbol, "operator needed for partial derivative is not in the registry")
    if op.unary_rule is None:
        raise UnsupportedOperatorError(symbol, "no outer derivative registered")
    return op.unary_rule
