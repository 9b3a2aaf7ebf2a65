import numpy as np
import pytest

from symbolic_partials import make_default_operators
from symbolic_partials.errors import OperatorArityError, UnsupportedOperatorError
from symbolic_partials.expression_tree.core.operators import (
    BINARY_OP_MAP, DEFAULT_PRECEDENCE, UNARY_OP_MAP, Operator, OperatorRegistry
)


def test_default_catalog_contents():
    ops = make_default_operators()
    for symbol in ['+', '-', '*', '/', '^']:
        op = ops.find_binary(symbol)
        assert op.prio == DEFAULT_PRECEDENCE[symbol]
        assert op.binary_rule is not None
    for symbol in UNARY_OP_MAP:
        op = ops.find_unary(symbol)
        assert op.unary_rule is not None, symbol
    assert set(BINARY_OP_MAP) <= {op.symbol for op in ops}


def test_plus_and_minus_are_both_binary_and_unary():
    ops = make_default_operators()
    for symbol in ['+', '-']:
        op = ops.find(symbol)
        assert op.is_binary and op.is_unary
    assert ops.find('-').unary(np.float64(2.0)) == -2.0
    assert ops.find('-').binary(np.float64(5.0), np.float64(2.0)) == 3.0


def test_default_registry_is_shared_per_type():
    assert make_default_operators() is make_default_operators(np.float64)
    assert make_default_operators('float64') is make_default_operators()
    assert make_default_operators(np.float32) is not make_default_operators()


def test_number_casts_to_registry_type():
    ops32 = make_default_operators(np.float32)
    assert ops32.dtype is np.float32
    assert isinstance(ops32.number(1), np.float32)
    assert isinstance(make_default_operators().number("2.5"), np.float64)


def test_find_missing_and_wrong_arity():
    ops = make_default_operators()
    assert ops.find('nope') is None
    assert 'sin' in ops
    assert 'nope' not in ops
    with pytest.raises(UnsupportedOperatorError) as excinfo:
        ops.find_binary('nope')
    assert excinfo.value.symbol == 'nope'
    with pytest.raises(OperatorArityError):
        ops.find_binary('sin')
    with pytest.raises(OperatorArityError):
        ops.find_unary('*')


def test_registry_rejects_invalid_operators():
    with pytest.raises(ValueError):
        OperatorRegistry([Operator('+', binary=np.add), Operator('+', binary=np.add)])
    with pytest.raises(ValueError):
        OperatorRegistry([Operator('noop')])
    with pytest.raises(TypeError):
        OperatorRegistry(['+'])
    with pytest.raises(TypeError):
        OperatorRegistry([Operator('+', binary=np.add)], dtype=np.int64)


def test_with_operators_extends_and_overrides():
    ops = make_default_operators()
    square = Operator('sq', unary=np.square)
    extended = ops.with_operators(square, Operator('*', binary=np.multiply, prio=7))
    assert extended is not ops
    assert len(extended) == len(ops) + 1
    assert extended.find('sq') is square
    assert extended.find('*').prio == 7
    # the base registry is untouched
    assert ops.find('sq') is None
    assert ops.find('*').prio == DEFAULT_PRECEDENCE['*']


def test_with_rules_replaces_only_rules():
    ops = make_default_operators()

    def rule(u, ops):
        return u

    updated = ops.with_rules('sin', unary_rule=rule)
    assert updated.find('sin').unary_rule is rule
    assert updated.find('sin').unary is ops.find('sin').unary
    with pytest.raises(UnsupportedOperatorError):
        ops.with_rules('nope', unary_rule=rule)
