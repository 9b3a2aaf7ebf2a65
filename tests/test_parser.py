import numpy as np
import pytest

from symbolic_partials import Expression, Operator, make_default_operators, parse
from symbolic_partials.errors import ExpressionParseError


def test_variables_are_indexed_alphabetically():
    e = parse("z*a+m")
    assert e.var_names == ('a', 'm', 'z')
    assert e.eval([1.0, 2.0, 3.0]) == 5.0


def test_braced_variable_names():
    e = parse("{mass flow}*2+{x_0}")
    assert e.var_names == ('mass flow', 'x_0')
    assert e.eval([1.5, 1.0]) == 4.0
    # braces reach names that would otherwise be operators
    assert parse("{sin}+1").var_names == ('sin',)


def test_numbers():
    assert parse("2.5").eval() == 2.5
    assert parse(".5").eval() == 0.5
    assert parse("2.").eval() == 2.0
    assert parse("1e-3").eval() == pytest.approx(1e-3)
    assert parse("1.5E+2").eval() == 150.0
    assert parse("3").var_names == ()


def test_non_finite_numbers():
    assert parse("inf").eval() == np.inf
    assert np.isnan(parse("nan").eval())
    assert parse("inf").var_names == ()
    assert parse("info*2").var_names == ('info',)
    assert parse("{inf}+1").var_names == ('inf',)
    assert str(parse("{inf}+1")) == "{inf}+1.0"


def test_overflowed_constant_round_trip():
    deri = parse("x*1e400").partial(0)
    again = parse(str(deri))
    assert again.var_names == ('x',)
    with np.errstate(all='ignore'):
        np.testing.assert_equal(again.eval([2.0]), deri.eval([2.0]))

    ops = make_default_operators()
    x = parse("x", ops)
    e = x * Expression.from_number(-np.inf, ops) + Expression.from_number(np.nan, ops)
    again = parse(str(e), ops)
    assert again.var_names == ('x',)
    with np.errstate(all='ignore'):
        np.testing.assert_equal(again.eval([2.0]), e.eval([2.0]))


@pytest.mark.parametrize("text, expected", [
    ("2+3*4", 14.0),
    ("(2+3)*4", 20.0),
    ("10-4-3", 3.0),
    ("2*3/4", 1.5),
    ("2^3^2", 64.0),
    ("2*3^2", 18.0),
    ("-2^2", 4.0),
    ("-(2^2)", -4.0),
    ("sin(0)+cos(0)", 1.0),
    ("sqrt(4)*2", 4.0),
    ("2*-3", -6.0),
    ("--3", 3.0),
    ("+-+3", -3.0),
    ("exp(ln(2))", 2.0),
])
def test_precedence_and_unary_binding(text, expected):
    assert parse(text).eval() == pytest.approx(expected)


def test_unary_chain_collapses_into_one_leaf():
    e = parse("-sin(x)")
    assert len(e.leaves) == 1
    inner = e.leaves[0].expression
    assert [op.symbol for op in inner.unary_ops] == ['-', 'sin']
    assert e.eval([0.5]) == pytest.approx(-np.sin(0.5))


def test_log_aliases_ln():
    assert parse("log(x)").eval([np.e]) == pytest.approx(1.0)
    assert parse("log2(8)").eval() == pytest.approx(3.0)
    assert parse("log10(1000)").eval() == pytest.approx(3.0)


@pytest.mark.parametrize("text", [
    "",
    "   ",
    "x+",
    "(x",
    "x)",
    "2x",
    "x $ y",
    "sin",
    "*x",
    "x sin y",
    "()",
])
def test_invalid_input(text):
    with pytest.raises(ExpressionParseError):
        parse(text)


def test_parse_error_is_value_error():
    with pytest.raises(ValueError):
        parse("(")


def test_from_string_uses_given_registry():
    ops32 = make_default_operators(np.float32)
    e = Expression.from_string("x*2", ops32)
    assert e.registry is ops32
    assert isinstance(e.leaves[1].value, np.float32)
    assert Expression.from_string("x").registry is make_default_operators()


def test_custom_identifier_operator():
    ops = make_default_operators().with_operators(
        Operator('mean', binary=lambda a, b: (a + b) / 2, prio=5))
    e = parse("x mean y*2", ops)
    assert e.eval([1.0, 3.0]) == 4.0
    assert str(e) == "{x} mean {y}*2.0"
    assert parse(str(e), ops) == e


@pytest.mark.parametrize("text", [
    "x*2+1",
    "sin(x)^2-cos(y*x)",
    "-(x+y)/(x-y)",
    "exp(-x)*{mass flow}",
    "sqrt(abs(x-2.5))+1e-3",
    "--x^-2",
])
def test_unparse_round_trip(text):
    e = parse(text)
    again = parse(str(e))
    assert again == e
    values = [0.7, 1.9, 3.1][:len(e.var_names)]
    assert again.eval(values) == pytest.approx(e.eval(values))
