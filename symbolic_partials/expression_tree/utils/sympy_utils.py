import operator
import sympy as sp
from typing import Callable, Dict, List, Optional, Sequence

from ...errors import UnsupportedOperatorError, VariableIndexError
from ..core.node import ConstantNode, VariableNode
from ..core.reduction import reduce_by_priority
from ..expression import Expression
from .tree_utils import get_variables

SYMPY_BINARY: Dict[str, Callable] = {
  '+': operator.add,
  '-': operator.sub,
  '*': operator.mul,
  '/': operator.truediv,
  '^': operator.pow,
}

SYMPY_UNARY: Dict[str, Callable] = {
  '+': operator.pos,
  '-': operator.neg,
  'sin': sp.sin,
  'cos': sp.cos,
  'tan': sp.tan,
  'asin': sp.asin,
  'acos': sp.acos,
  'atan': sp.atan,
  'sinh': sp.sinh,
  'cosh': sp.cosh,
  'tanh': sp.tanh,
  'exp': sp.exp,
  'ln': sp.log,
  'log': sp.log,
  'log2': lambda a: sp.log(a, 2),
  'log10': lambda a: sp.log(a, 10),
  'sqrt': sp.sqrt,
  'cbrt': sp.cbrt,
  'abs': sp.Abs,
  'signum': sp.sign,
}


def sympy_symbols(expression: Expression) -> List[sp.Symbol]:
  """One real symbol per variable index, named after the declared variable names"""
  if expression.var_names is not None:
    names = list(expression.var_names)
  else:
    found = dict(get_variables(expression))
    n_vars = max(found, default=-1) + 1
    names = [found.get(i, f"x{i}") for i in range(n_vars)]
  return [sp.Symbol(name, real=True) for name in names]


def _constant_to_sympy(value) -> sp.Expr:
  value = float(value)
  if value.is_integer():
    return sp.Integer(int(value))
  return sp.Float(value)


def to_sympy(expression: Expression, symbols: Optional[Sequence[sp.Symbol]] = None) -> sp.Expr:
  """Convert to a SymPy expression; ``symbols[i]`` stands for variable index i"""
  if symbols is None:
    symbols = sympy_symbols(expression)
  return _to_sympy(expression, list(symbols))


def _to_sympy(expression: Expression, symbols: List[sp.Symbol]) -> sp.Expr:
  leaf_values = []
  for leaf in expression.leaves:
    if isinstance(leaf, ConstantNode):
      leaf_values.append(_constant_to_sympy(leaf.value))
    elif isinstance(leaf, VariableNode):
      if leaf.index >= len(symbols):
        raise VariableIndexError(leaf.index, len(symbols))
      leaf_values.append(symbols[leaf.index])
    else:
      leaf_values.append(_to_sympy(leaf.expression, symbols))

  def fold(op, a, b):
    if op.symbol not in SYMPY_BINARY:
      raise UnsupportedOperatorError(op.symbol, "no SymPy counterpart")
    return SYMPY_BINARY[op.symbol](a, b)

  result = reduce_by_priority(leaf_values, expression.bin_ops, fold)
  for op in reversed(expression.unary_ops):
    if op.symbol not in SYMPY_UNARY:
      raise UnsupportedOperatorError(op.symbol, "no SymPy counterpart")
    result = SYMPY_UNARY[op.symbol](result)
  return result


def lambdify(expression: Expression, symbols: Optional[Sequence[sp.Symbol]] = None) -> Callable:
  """Numpy function of one positional argument per variable index"""
  if symbols is None:
    symbols = sympy_symbols(expression)
  return sp.lambdify(list(symbols), to_sympy(expression, symbols), modules='numpy')


def latex_representation(expression: Expression) -> str:
  """Get LaTeX representation of the expression"""
  return sp.latex(to_sympy(expression))
