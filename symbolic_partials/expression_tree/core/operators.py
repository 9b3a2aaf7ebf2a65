import numpy as np
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Tuple

from ...errors import OperatorArityError, UnsupportedOperatorError


class OpType(IntEnum):
  # Binary ops
  ADD = 0
  SUB = 1
  MUL = 2
  DIV = 3
  POW = 4
  # Unary ops
  POS = 5
  NEG = 6
  SIN = 7
  COS = 8
  TAN = 9
  ASIN = 10
  ACOS = 11
  ATAN = 12
  SINH = 13
  COSH = 14
  TANH = 15
  EXP = 16
  LN = 17
  LOG2 = 18
  LOG10 = 19
  SQRT = 20
  CBRT = 21
  ABS = 22
  SIGNUM = 23

FIRST_UNARY_OP = OpType.POS

# Mapping dictionaries
BINARY_OP_MAP = {'+': OpType.ADD, '-': OpType.SUB, '*': OpType.MUL, '/': OpType.DIV, '^': OpType.POW}
UNARY_OP_MAP = {
    '+': OpType.POS, '-': OpType.NEG,
    'sin': OpType.SIN, 'cos': OpType.COS, 'tan': OpType.TAN,
    'asin': OpType.ASIN, 'acos': OpType.ACOS, 'atan': OpType.ATAN,
    'sinh': OpType.SINH, 'cosh': OpType.COSH, 'tanh': OpType.TANH,
    'exp': OpType.EXP, 'ln': OpType.LN, 'log': OpType.LN,
    'log2': OpType.LOG2, 'log10': OpType.LOG10,
    'sqrt': OpType.SQRT, 'cbrt': OpType.CBRT,
    'abs': OpType.ABS, 'signum': OpType.SIGNUM
}

# Higher binds tighter; ties fold left to right
DEFAULT_PRECEDENCE: Dict[str, int] = {
  '+': 0,
  '-': 1,
  '*': 2,
  '/': 3,
  '^': 4,
}

# numpy ufuncs keep the scalar type of their inputs, which keeps trees generic
# over numpy floating types
BINARY_FUNCS: Dict[str, Callable] = {
  '+': np.add,
  '-': np.subtract,
  '*': np.multiply,
  '/': np.divide,
  '^': np.power,
}

UNARY_FUNCS: Dict[str, Callable] = {
  '+': np.positive,
  '-': np.negative,
  'sin': np.sin,
  'cos': np.cos,
  'tan': np.tan,
  'asin': np.arcsin,
  'acos': np.arccos,
  'atan': np.arctan,
  'sinh': np.sinh,
  'cosh': np.cosh,
  'tanh': np.tanh,
  'exp': np.exp,
  'ln': np.log,
  'log': np.log,
  'log2': np.log2,
  'log10': np.log10,
  'sqrt': np.sqrt,
  'cbrt': np.cbrt,
  'abs': np.abs,
  'signum': np.sign,
}


@dataclass(frozen=True)
class Operator:
  """Capability record of one operator symbol.

  ``binary``/``unary`` apply the operator numerically. ``binary_rule`` and
  ``unary_rule`` are its derivative rules; an operator without a rule can be
  evaluated but not differentiated.
  """
  symbol: str
  binary: Optional[Callable[[Any, Any], Any]] = None
  unary: Optional[Callable[[Any], Any]] = None
  prio: int = 0
  binary_rule: Optional[Callable] = None
  unary_rule: Optional[Callable] = None

  @property
  def is_binary(self) -> bool:
    return self.binary is not None

  @property
  def is_unary(self) -> bool:
    return self.unary is not None


class OperatorRegistry:
  """Immutable catalog of operators shared by reference between trees.

  Lookups are linear scans; registries hold tens of entries.
  """

  __slots__ = ('_operators', '_dtype')

  def __init__(self, operators: Iterable[Operator], dtype: Any = np.float64):
    operators = tuple(operators)
    seen = set()
    for op in operators:
      if not isinstance(op, Operator):
        raise TypeError(f"expected Operator, got {type(op).__name__}")
      if op.symbol in seen:
        raise ValueError(f"operator '{op.symbol}' registered twice")
      if op.binary is None and op.unary is None:
        raise ValueError(f"operator '{op.symbol}' has neither a binary nor a unary function")
      seen.add(op.symbol)
    self._operators: Tuple[Operator, ...] = operators
    self._dtype = np.dtype(dtype).type
    if not issubclass(self._dtype, np.inexact):
      raise TypeError(f"numeric type of a registry must be a floating type, got {self._dtype.__name__}")

  @property
  def dtype(self):
    return self._dtype

  @property
  def operators(self) -> Tuple[Operator, ...]:
    return self._operators

  def __iter__(self) -> Iterator[Operator]:
    return iter(self._operators)

  def __len__(self) -> int:
    return len(self._operators)

  def __contains__(self, symbol) -> bool:
    return self.find(symbol) is not None

  def __repr__(self) -> str:
    symbols = ', '.join(op.symbol for op in self._operators)
    return f"OperatorRegistry([{symbols}], dtype={self._dtype.__name__})"

  def find(self, symbol: str) -> Optional[Operator]:
    for op in self._operators:
      if op.symbol == symbol:
        return op
    return None

  def find_binary(self, symbol: str) -> Operator:
    op = self.find(symbol)
    if op is None:
      raise UnsupportedOperatorError(symbol, "not found in registry")
    if op.binary is None:
      raise OperatorArityError(symbol, "binary")
    return op

  def find_unary(self, symbol: str) -> Operator:
    op = self.find(symbol)
    if op is None:
      raise UnsupportedOperatorError(symbol, "not found in registry")
    if op.unary is None:
      raise OperatorArityError(symbol, "unary")
    return op

  def number(self, value):
    """Cast a literal to the registry's numeric type"""
    return self._dtype(value)

  def with_operators(self, *operators: Operator) -> 'OperatorRegistry':
    """New registry with the given operators added, replacing same-symbol entries"""
    overrides = {op.symbol: op for op in operators}
    kept = [overrides.pop(op.symbol, op) for op in self._operators]
    return OperatorRegistry(kept + list(overrides.values()), dtype=self._dtype)

  def with_rules(self, symbol: str, binary_rule: Optional[Callable] = None,
                 unary_rule: Optional[Callable] = None) -> 'OperatorRegistry':
    """New registry in which ``symbol`` carries the given derivative rules"""
    op = self.find(symbol)
    if op is None:
      raise UnsupportedOperatorError(symbol, "not found in registry")
    changes = {}
    if binary_rule is not None:
      changes['binary_rule'] = binary_rule
    if unary_rule is not None:
      changes['unary_rule'] = unary_rule
    return self.with_operators(replace(op, **changes))
