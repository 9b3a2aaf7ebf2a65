from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
  from ..expression import Expression


class Node(ABC):
  """Base leaf class with hash caching. Leaves are never mutated after construction."""

  __slots__ = ('_hash_cache',)

  def __init__(self):
    self._hash_cache: Optional[int] = None

  @abstractmethod
  def to_string(self) -> str:
    pass

  @abstractmethod
  def _key(self) -> Tuple:
    pass

  def __hash__(self) -> int:
    if self._hash_cache is None:
      self._hash_cache = hash((type(self).__name__,) + self._key())
    return self._hash_cache

  def __eq__(self, other) -> bool:
    if type(self) is not type(other):
      return False
    return self._key() == other._key()

  def __repr__(self) -> str:
    return f"{type(self).__name__}({self.to_string()})"


class ConstantNode(Node):
  __slots__ = ('value',)

  def __init__(self, value):
    super().__init__()
    self.value = value

  def to_string(self) -> str:
    return repr(float(self.value))

  def _key(self) -> Tuple:
    return (float(self.value),)


class VariableNode(Node):
  __slots__ = ('index', 'name')

  def __init__(self, index: int, name: Optional[str] = None):
    super().__init__()
    if index < 0:
      raise ValueError(f"variable index must be non-negative, got {index}")
    self.index = int(index)
    self.name = name if name is not None else f"x{index}"

  def to_string(self) -> str:
    return f"{{{self.name}}}"

  def _key(self) -> Tuple:
    return (self.index, self.name)


class ExpressionNode(Node):
  """Leaf owning a nested expression"""

  __slots__ = ('expression',)

  def __init__(self, expression: 'Expression'):
    super().__init__()
    self.expression = expression

  def to_string(self) -> str:
    inner = self.expression
    text = inner.unparse()
    # unary applications and single leaves already read as one operand
    if inner.unary_ops or len(inner.leaves) == 1:
      return text
    return f"({text})"

  def _key(self) -> Tuple:
    return (self.expression,)
