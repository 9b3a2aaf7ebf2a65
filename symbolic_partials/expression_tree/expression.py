import numbers
import numpy as np
from typing import Dict, Iterable, Optional, Sequence, Tuple

from ..errors import (
  EvaluationError, MalformedTreeError, RegistryMismatchError, RegistryMissingError
)
from .core.node import Node, ConstantNode, VariableNode, ExpressionNode
from .core.operators import Operator, OperatorRegistry
from .core.reduction import reduce_by_priority


def _common_registry(left: 'Expression', right: 'Expression') -> Optional[OperatorRegistry]:
  if left.registry is None:
    return right.registry
  if right.registry is not None and right.registry is not left.registry:
    raise RegistryMismatchError("cannot combine expressions governed by different operator registries")
  return left.registry


def _align_variables(left: 'Expression', right: 'Expression'):
  """Bring two operands onto one variable numbering.

  Separately parsed trees number their variables independently. When both
  declare names and the names differ, the result declares the sorted union and
  every variable is renumbered by its name.
  """
  if left.var_names is None or right.var_names is None or left.var_names == right.var_names:
    return left, right, left.var_names if left.var_names is not None else right.var_names
  names = tuple(sorted(set(left.var_names) | set(right.var_names)))
  return _renumbered(left, names), _renumbered(right, names), names


def _renumbered(expression: 'Expression', names: Tuple[str, ...]) -> 'Expression':
  position = {name: i for i, name in enumerate(names)}
  mapping = {i: position[name] for i, name in enumerate(expression.var_names)}
  if all(old == new for old, new in mapping.items()):
    return expression.with_var_names(names)
  return _remap_variables(expression, mapping, names)


def _remap_variables(expression: 'Expression', mapping: Dict[int, int], names) -> 'Expression':
  leaves = []
  for leaf in expression.leaves:
    if isinstance(leaf, VariableNode):
      leaf = VariableNode(mapping.get(leaf.index, leaf.index), leaf.name)
    elif isinstance(leaf, ExpressionNode):
      nested = leaf.expression
      leaf = ExpressionNode(_remap_variables(nested, mapping, names if nested.var_names is not None else None))
    leaves.append(leaf)
  return Expression(leaves, expression.bin_ops, expression.unary_ops, expression.registry, names)


class Expression:
  """Flat expression tree.

  ``leaves`` are joined by the binary chain ``bin_ops`` (``bin_ops[i]`` sits
  between ``leaves[i]`` and ``leaves[i+1]``) and the reduced result is passed
  through ``unary_ops``, outermost operator first. Instances are immutable;
  every transformation returns a new expression sharing unchanged leaves.
  """

  __slots__ = ('leaves', 'bin_ops', 'unary_ops', 'registry', 'var_names', '_string_cache', '_hash_cache')

  def __init__(self, leaves: Iterable[Node], bin_ops: Iterable[Operator] = (),
               unary_ops: Iterable[Operator] = (), registry: Optional[OperatorRegistry] = None,
               var_names: Optional[Sequence[str]] = None):
    self.leaves: Tuple[Node, ...] = tuple(leaves)
    self.bin_ops: Tuple[Operator, ...] = tuple(bin_ops)
    self.unary_ops: Tuple[Operator, ...] = tuple(unary_ops)
    self.registry = registry
    self.var_names: Optional[Tuple[str, ...]] = tuple(var_names) if var_names is not None else None
    self._string_cache: Optional[str] = None
    self._hash_cache: Optional[int] = None
    self._check_invariants()

  def _check_invariants(self):
    if not self.leaves:
      raise MalformedTreeError("an expression needs at least one leaf")
    if len(self.bin_ops) != len(self.leaves) - 1:
      raise MalformedTreeError(
        f"{len(self.leaves)} leaves need {len(self.leaves) - 1} binary operators, got {len(self.bin_ops)}")
    for leaf in self.leaves:
      if not isinstance(leaf, Node):
        raise MalformedTreeError(f"leaf of unexpected type {type(leaf).__name__}")
    for op in self.bin_ops:
      if not isinstance(op, Operator) or op.binary is None:
        raise MalformedTreeError(f"operator {getattr(op, 'symbol', op)!r} in binary position has no binary function")
    for op in self.unary_ops:
      if not isinstance(op, Operator) or op.unary is None:
        raise MalformedTreeError(f"operator {getattr(op, 'symbol', op)!r} in unary position has no unary function")
    if self.registry is not None and not isinstance(self.registry, OperatorRegistry):
      raise MalformedTreeError(f"registry of unexpected type {type(self.registry).__name__}")

  # construction

  @classmethod
  def from_leaf(cls, node: Node, registry: Optional[OperatorRegistry] = None) -> 'Expression':
    return cls((node,), registry=registry)

  @classmethod
  def from_number(cls, value, registry: Optional[OperatorRegistry]) -> 'Expression':
    if registry is None:
      raise RegistryMissingError("a registry is needed to create a constant leaf")
    return cls((ConstantNode(registry.number(value)),), registry=registry)

  @classmethod
  def combine(cls, symbol: str, left: 'Expression', right: 'Expression') -> 'Expression':
    """Join two expressions with the binary operator ``symbol``.

    An operand's leaves are spliced into the new chain when doing so cannot
    change which pairs get folded first; otherwise the operand becomes a
    single nested leaf.
    """
    registry = _common_registry(left, right)
    if registry is None:
      raise RegistryMissingError(f"combining with '{symbol}' needs an operator registry")
    op = registry.find_binary(symbol)
    left, right, var_names = _align_variables(left, right)
    left_leaves, left_ops = left._splice(op, strict=False)
    right_leaves, right_ops = right._splice(op, strict=True)
    return cls(left_leaves + right_leaves, left_ops + (op,) + right_ops, registry=registry, var_names=var_names)

  def _splice(self, op: Operator, strict: bool) -> Tuple[Tuple[Node, ...], Tuple[Operator, ...]]:
    # left operand: equal precedence is fine, ties already fold left first
    # right operand: its operators must bind strictly tighter
    if not self.unary_ops and all(
        (inner.prio > op.prio) if strict else (inner.prio >= op.prio) for inner in self.bin_ops):
      return self.leaves, self.bin_ops
    return (ExpressionNode(self),), ()

  def apply_unary(self, symbol: str) -> 'Expression':
    """Wrap the expression in the unary operator ``symbol``"""
    if self.registry is None:
      raise RegistryMissingError(f"applying '{symbol}' needs an operator registry")
    op = self.registry.find_unary(symbol)
    return Expression(self.leaves, self.bin_ops, (op,) + self.unary_ops, self.registry, self.var_names)

  def with_registry(self, registry: Optional[OperatorRegistry]) -> 'Expression':
    return Expression(self.leaves, self.bin_ops, self.unary_ops, registry, self.var_names)

  def with_var_names(self, var_names: Optional[Sequence[str]]) -> 'Expression':
    return Expression(self.leaves, self.bin_ops, self.unary_ops, self.registry, var_names)

  def with_unary_ops(self, unary_ops: Iterable[Operator]) -> 'Expression':
    return Expression(self.leaves, self.bin_ops, unary_ops, self.registry, self.var_names)

  @property
  def is_leaf(self) -> bool:
    """Single leaf without unary operators"""
    return len(self.leaves) == 1 and not self.unary_ops

  # arithmetic sugar

  def _coerce(self, other) -> 'Expression':
    if isinstance(other, Expression):
      return other
    if isinstance(other, numbers.Real):
      return Expression.from_number(other, self.registry)
    return NotImplemented

  def _binary(self, symbol, other, reflected=False):
    other = self._coerce(other)
    if other is NotImplemented:
      return NotImplemented
    if reflected:
      return Expression.combine(symbol, other, self)
    return Expression.combine(symbol, self, other)

  def __add__(self, other):
    return self._binary('+', other)

  def __radd__(self, other):
    return self._binary('+', other, reflected=True)

  def __sub__(self, other):
    return self._binary('-', other)

  def __rsub__(self, other):
    return self._binary('-', other, reflected=True)

  def __mul__(self, other):
    return self._binary('*', other)

  def __rmul__(self, other):
    return self._binary('*', other, reflected=True)

  def __truediv__(self, other):
    return self._binary('/', other)

  def __rtruediv__(self, other):
    return self._binary('/', other, reflected=True)

  def __pow__(self, other):
    return self._binary('^', other)

  def __rpow__(self, other):
    return self._binary('^', other, reflected=True)

  __xor__ = __pow__

  def __neg__(self):
    return self.apply_unary('-')

  # evaluation

  def eval(self, values: Sequence = (), strict: bool = False):
    """Evaluate with ``values[i]`` bound to the variable of index i.

    Values may be scalars or numpy arrays. With ``strict`` floating point
    domain faults raise EvaluationError instead of producing nan/inf.
    """
    values = list(values)
    if not strict:
      return self._eval(values)
    try:
      with np.errstate(divide='raise', invalid='raise', over='raise'):
        return self._eval(values)
    except FloatingPointError as e:
      raise EvaluationError(f"evaluating {self.unparse()} failed: {e}") from e

  def evaluate(self, X: np.ndarray, strict: bool = False) -> np.ndarray:
    """Evaluate on a sample matrix with one column per variable index"""
    X = np.asarray(X)
    if X.ndim == 1:
      X = X.reshape(-1, 1)
    result = self.eval([X[:, i] for i in range(X.shape[1])], strict=strict)
    if np.ndim(result) == 0:
      return np.full(X.shape[0], result)
    return np.asarray(result)

  def _eval(self, values: list):
    leaf_values = [self._eval_leaf(leaf, values) for leaf in self.leaves]
    result = reduce_by_priority(leaf_values, self.bin_ops, lambda op, a, b: op.binary(a, b))
    for op in reversed(self.unary_ops):
      result = op.unary(result)
    return result

  @staticmethod
  def _eval_leaf(leaf: Node, values: list):
    if isinstance(leaf, ConstantNode):
      return leaf.value
    if isinstance(leaf, VariableNode):
      if leaf.index >= len(values):
        raise EvaluationError(
          f"no value bound to variable '{leaf.name}' (index {leaf.index}), got {len(values)} value(s)")
      return values[leaf.index]
    return leaf.expression._eval(values)

  # differentiation

  def partial(self, var_index: int) -> 'Expression':
    from ..differentiation.engine import partial
    return partial(var_index, self)

  def partial_iter(self, var_indices: Iterable[int]) -> 'Expression':
    from ..differentiation.engine import partial_iter
    return partial_iter(self, var_indices)

  # text and conversions

  def unparse(self) -> str:
    if self._string_cache is None:
      parts = [self.leaves[0].to_string()]
      for op, leaf in zip(self.bin_ops, self.leaves[1:]):
        symbol = f" {op.symbol} " if op.symbol.isidentifier() else op.symbol
        parts.append(symbol)
        parts.append(leaf.to_string())
      text = ''.join(parts)
      for op in reversed(self.unary_ops):
        text = f"{op.symbol}({text})"
      self._string_cache = text
    return self._string_cache

  def to_string(self) -> str:
    return self.unparse()

  def __str__(self) -> str:
    return self.unparse()

  def __repr__(self) -> str:
    return f"Expression('{self.unparse()}')"

  def to_sympy(self, symbols=None):
    from .utils.sympy_utils import to_sympy
    return to_sympy(self, symbols)

  def size(self) -> int:
    """Number of leaves and operators over all nesting levels"""
    from .utils.tree_utils import tree_size
    return tree_size(self)

  def _key(self) -> Tuple:
    return (self.leaves,
            tuple(op.symbol for op in self.bin_ops),
            tuple(op.symbol for op in self.unary_ops))

  def __hash__(self) -> int:
    if self._hash_cache is None:
      self._hash_cache = hash(self._key())
    return self._hash_cache

  def __eq__(self, other) -> bool:
    if not isinstance(other, Expression):
      return NotImplemented
    return self._key() == other._key()

  @classmethod
  def from_string(cls, expr_str: str, ops: Optional[OperatorRegistry] = None) -> 'Expression':
    from .parser import parse
    return parse(expr_str, ops)
