import sys
import os
# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
from symbolic_partials import (
  Expression, LogLevel, Operator, configure_logging, flatten, make_default_operators, parse,
  to_sympy
)


def gradient_of_ideal_gas():
  """Gradient of the ideal gas pressure p = n*R*T/V"""
  expr = parse("n*8.314*T/V")
  print(f"p = {expr}")
  print(f"variables: {expr.var_names}")

  point = [300.0, 0.02, 1.5]  # T, V, n
  for i, name in enumerate(expr.var_names):
    deri = expr.partial(i)
    print(f"dp/d{name} = {deri}")
    print(f"  at {point}: {deri.eval(point):.6g}")
    print(f"  sympy: {to_sympy(deri).simplify()}")


def hessian_on_grid():
  """Second derivatives of a two-variable function, evaluated on a grid"""
  expr = parse("sin(x)*exp(-y)+x^2*y")
  xs, ys = np.meshgrid(np.linspace(0.1, 2.0, 4), np.linspace(0.1, 1.0, 4))
  X = np.column_stack([xs.ravel(), ys.ravel()])

  for a in range(2):
    for b in range(a, 2):
      deri = expr.partial_iter([a, b])
      values = flatten(deri).evaluate(X)
      print(f"d2f/d{expr.var_names[a]}d{expr.var_names[b]}: min {values.min():.4f}, max {values.max():.4f}")


def custom_operator():
  """Plug in an operator together with its derivative rule"""
  def softplus_outer(u, ops):
    # d/du ln(1+exp(u)) = 1/(1+exp(-u))
    one = Expression.from_number(1, ops)
    return one / (one + (-u).apply_unary('exp'))

  ops = make_default_operators().with_operators(
    Operator('softplus', unary=lambda a: np.log1p(np.exp(a)), unary_rule=softplus_outer))
  expr = parse("softplus(2*x)", ops)
  deri = expr.partial(0)
  print(f"d/dx {expr} = {deri}")
  print(f"  at x=0.5: {deri.eval([0.5]):.6f}")


if __name__ == "__main__":
  configure_logging(LogLevel.DETAILED)
  gradient_of_ideal_gas()
  print()
  hessian_on_grid()
  print()
  custom_operator()
