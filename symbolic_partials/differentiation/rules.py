"""
Derivative rules of the default operator catalog.

Binary rules receive both operands of one fold as Operand pairs (value and
derivative) and return the derivative of ``f op g``. Unary rules receive the
argument ``u`` of the operator and return the outer derivative evaluated at
``u``; the engine multiplies it with the inner derivative.
"""

from dataclasses import dataclass
from typing import Callable, Dict

from ..expression_tree.core.operators import OperatorRegistry
from ..expression_tree.expression import Expression


@dataclass(frozen=True)
class Operand:
    """One side of a binary fold together with its partial derivative"""
    value: Expression
    derivative: Expression


BinaryRule = Callable[[Operand, Operand, OperatorRegistry], Expression]
UnaryRule = Callable[[Expression, OperatorRegistry], Expression]


def _num(value, ops: OperatorRegistry) -> Expression:
    return Expression.from_number(value, ops)


def _sum_rule(f: Operand, g: Operand, ops: OperatorRegistry) -> Expression:
    return f.derivative + g.derivative


def _difference_rule(f: Operand, g: Operand, ops: OperatorRegistry) -> Expression:
    return f.derivative - g.derivative


def _product_rule(f: Operand, g: Operand, ops: OperatorRegistry) -> Expression:
    return f.derivative * g.value + f.value * g.derivative


def _quotient_rule(f: Operand, g: Operand, ops: OperatorRegistry) -> Expression:
    return (f.derivative * g.value - f.value * g.derivative) / g.value ** _num(2, ops)


def _power_rule(f: Operand, g: Operand, ops: OperatorRegistry) -> Expression:
    # general form f^(g-1)*g*f' + f^g*ln(f)*g', kept even for constant exponents
    one = _num(1, ops)
    return (f.value ** (g.value - one) * g.value * f.derivative
            + f.value ** g.value * f.value.apply_unary('ln') * g.derivative)


BINARY_RULES: Dict[str, BinaryRule] = {
    '+': _sum_rule,
    '-': _difference_rule,
    '*': _product_rule,
    '/': _quotient_rule,
    '^': _power_rule,
}


def unary_chain(*symbols: str) -> UnaryRule:
    """Outer derivative that is itself a chain of unary operators, e.g. cos -> ('-', 'sin')"""
    def rule(u: Expression, ops: OperatorRegistry) -> Expression:
        result = u
        for symbol in reversed(symbols):
            result = result.apply_unary(symbol)
        return result
    return rule


def constant(value) -> UnaryRule:
    """Outer derivative that does not depend on the argument"""
    def rule(u: Expression, ops: OperatorRegistry) -> Expression:
        return _num(value, ops)
    return rule


def _tan(u, ops):
    return _num(1, ops) / u.apply_unary('cos') ** _num(2, ops)


def _asin(u, ops):
    return _num(1, ops) / (_num(1, ops) - u ** _num(2, ops)).apply_unary('sqrt')


def _acos(u, ops):
    return -(_num(1, ops) / (_num(1, ops) - u ** _num(2, ops)).apply_unary('sqrt'))


def _atan(u, ops):
    return _num(1, ops) / (_num(1, ops) + u ** _num(2, ops))


def _tanh(u, ops):
    return _num(1, ops) - u.apply_unary('tanh') ** _num(2, ops)


def _ln(u, ops):
    return _num(1, ops) / u


def _log_base(base) -> UnaryRule:
    def rule(u, ops):
        return _num(1, ops) / (u * _num(base, ops).apply_unary('ln'))
    return rule


def _sqrt(u, ops):
    return _num(1, ops) / (_num(2, ops) * u.apply_unary('sqrt'))


def _cbrt(u, ops):
    return _num(1, ops) / (_num(3, ops) * u.apply_unary('cbrt') ** _num(2, ops))


UNARY_RULES: Dict[str, UnaryRule] = {
    '+': constant(1),
    '-': constant(-1),
    'sin': unary_chain('cos'),
    'cos': unary_chain('-', 'sin'),
    'tan': _tan,
    'asin': _asin,
    'acos': _acos,
    'atan': _atan,
    'sinh': unary_chain('cosh'),
    'cosh': unary_chain('sinh'),
    'tanh': _tanh,
    'exp': unary_chain('exp'),
    'ln': _ln,
    'log': _ln,
    'log2': _log_base(2),
    'log10': _log_base(10),
    'sqrt': _sqrt,
    'cbrt': _cbrt,
    'abs': unary_chain('signum'),
    'signum': constant(0),
}
