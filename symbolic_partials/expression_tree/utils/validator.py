from typing import Optional

from ...errors import (
  MalformedTreeError, RegistryMismatchError, SymbolicPartialsError, VariableIndexError
)
from ..core.node import ExpressionNode, VariableNode
from ..core.operators import OperatorRegistry
from ..expression import Expression


class ExpressionValidator:
  """Whole-tree checks that a single Expression constructor cannot make"""

  @staticmethod
  def is_valid_expression(expression: Expression, registry: Optional[OperatorRegistry] = None) -> bool:
    try:
      ExpressionValidator.validate(expression, registry)
      return True
    except SymbolicPartialsError:
      return False

  @staticmethod
  def validate(expression: Expression, registry: Optional[OperatorRegistry] = None):
    """Raise if the tree is unusable under ``registry``.

    Nested expressions must be governed by ``registry`` or by none, and when
    the root declares variable names every variable index must be in range.
    """
    if not isinstance(expression, Expression):
      raise MalformedTreeError(f"expected an Expression, got {type(expression).__name__}")
    if registry is None:
      registry = expression.registry
    n_vars = len(expression.var_names) if expression.var_names is not None else None
    ExpressionValidator._validate_recursive(expression, registry, n_vars)

  @staticmethod
  def _validate_recursive(expression: Expression, registry: Optional[OperatorRegistry],
                          n_vars: Optional[int]):
    if registry is not None and expression.registry is not None and expression.registry is not registry:
      raise RegistryMismatchError("nested expression is governed by a different operator registry")

    for leaf in expression.leaves:
      if isinstance(leaf, ExpressionNode):
        if not isinstance(leaf.expression, Expression):
          raise MalformedTreeError("ExpressionNode does not hold an Expression")
        ExpressionValidator._validate_recursive(leaf.expression, registry, n_vars)
      elif isinstance(leaf, VariableNode):
        if n_vars is not None and leaf.index >= n_vars:
          raise VariableIndexError(leaf.index, n_vars)
