import numpy as np
import pytest

from symbolic_partials import (
    ConstantNode, Expression, ExpressionNode, VariableNode, make_default_operators, parse
)
from symbolic_partials.expression_tree.utils.validator import ExpressionValidator
from symbolic_partials.errors import (
    EvaluationError, MalformedTreeError, RegistryMismatchError, RegistryMissingError
)
from symbolic_partials.expression_tree.utils.tree_utils import (
    calculate_tree_depth, get_all_leaves, get_binary_ops, get_constants, get_operator_usage_counts,
    get_unary_ops, get_variables, tree_size
)


@pytest.fixture
def ops():
    return make_default_operators()


def test_invariants_are_checked(ops):
    with pytest.raises(MalformedTreeError):
        Expression([])
    with pytest.raises(MalformedTreeError):
        Expression([ConstantNode(1.0), ConstantNode(2.0)])
    with pytest.raises(MalformedTreeError):
        Expression([ConstantNode(1.0), ConstantNode(2.0)], [ops.find('sin')])
    with pytest.raises(MalformedTreeError):
        Expression([ConstantNode(1.0)], unary_ops=[ops.find('*')])
    with pytest.raises(MalformedTreeError):
        Expression([1.0])
    with pytest.raises(ValueError):
        VariableNode(-1)


def test_leaf_constructors(ops):
    x = Expression.from_leaf(VariableNode(0, 'x'), ops)
    assert x.is_leaf
    assert x.eval([3.0]) == 3.0
    c = Expression.from_number(2, ops)
    assert isinstance(c.leaves[0].value, np.float64)
    with pytest.raises(RegistryMissingError):
        Expression.from_number(2, None)


def test_combine_keeps_fold_order(ops):
    x = parse("x")
    assert ((x + 1) * 2).eval([3.0]) == 8.0
    assert (x * 2 + 1).eval([3.0]) == 7.0
    assert (x - (x + 1)).eval([3.0]) == -1.0
    assert (x / (x * 2)).eval([3.0]) == 0.5
    assert (2 ** (x - 1)).eval([3.0]) == 4.0
    assert ((x - 1) - (x - 2)).eval([3.0]) == 1.0
    assert (x ^ 2).eval([3.0]) == 9.0


def test_combine_splices_when_order_is_unchanged(ops):
    x = parse("x")
    e = x * 2 + 1
    assert len(e.leaves) == 3
    assert [op.symbol for op in e.bin_ops] == ['*', '+']
    wrapped = (x + 1) * 2
    assert len(wrapped.leaves) == 2
    assert isinstance(wrapped.leaves[0], ExpressionNode)


def test_combine_merges_variables_by_name():
    f = parse("x") * parse("y")
    assert f.var_names == ('x', 'y')
    assert [(leaf.index, leaf.name) for leaf in f.leaves] == [(0, 'x'), (1, 'y')]
    assert f.eval([2.0, 3.0]) == 6.0
    assert f.partial(0).eval([2.0, 3.0]) == 3.0
    assert f.partial(1).eval([2.0, 3.0]) == 2.0
    assert parse(str(f)) == f
    assert parse(str(f)).eval([2.0, 3.0]) == 6.0


def test_combine_renumbers_nested_operands():
    g = parse("y") + parse("x+y")
    assert g.var_names == ('x', 'y')
    assert g.eval([2.0, 3.0]) == 8.0
    assert g.partial(0).eval([2.0, 3.0]) == 1.0
    assert g.partial(1).eval([2.0, 3.0]) == 2.0
    assert parse(str(g)).eval([2.0, 3.0]) == 8.0

    h = parse("y") * parse("sin(x)+y")
    assert isinstance(h.leaves[1], ExpressionNode)
    assert [(i, name) for i, name in get_variables(h)] == [(0, 'x'), (1, 'y')]
    np.testing.assert_allclose(h.eval([2.0, 3.0]), 3.0 * (np.sin(2.0) + 3.0))
    np.testing.assert_allclose(h.partial(0).eval([2.0, 3.0]), 3.0 * np.cos(2.0))


def test_combine_with_undeclared_names_keeps_indices(ops):
    f = parse("x") * Expression.from_leaf(VariableNode(0, 'x'), ops)
    assert f.var_names == ('x',)
    assert f.eval([3.0]) == 9.0


def test_apply_unary_prepends(ops):
    x = parse("x")
    e = x.apply_unary('cos').apply_unary('sin')
    assert [op.symbol for op in e.unary_ops] == ['sin', 'cos']
    assert e.eval([0.5]) == pytest.approx(np.sin(np.cos(0.5)))
    assert (-x).eval([2.0]) == -2.0


def test_registry_mismatch_and_missing(ops):
    ops32 = make_default_operators(np.float32)
    with pytest.raises(RegistryMismatchError):
        parse("x", ops32) + parse("y")
    bare = Expression.from_leaf(VariableNode(0))
    with pytest.raises(RegistryMissingError):
        bare + 1
    with pytest.raises(RegistryMissingError):
        Expression.combine('+', bare, bare)
    with pytest.raises(RegistryMissingError):
        bare.apply_unary('sin')
    # a tree without registry borrows the other side's
    assert (bare + parse("y")).registry is ops


def test_eval_is_generic_over_float_type():
    ops32 = make_default_operators(np.float32)
    e = parse("x*2.5+1", ops32)
    result = e.eval([np.float32(2.0)])
    assert isinstance(result, np.float32)
    assert result == np.float32(6.0)


def test_eval_on_arrays_and_matrices():
    e = parse("x*y+sin(x)")
    X = np.array([[0.0, 1.0], [1.0, 2.0], [2.0, 3.0]])
    expected = X[:, 0] * X[:, 1] + np.sin(X[:, 0])
    np.testing.assert_allclose(e.eval([X[:, 0], X[:, 1]]), expected)
    np.testing.assert_allclose(e.evaluate(X), expected)
    np.testing.assert_allclose(parse("2.5").evaluate(np.zeros((4, 0))), np.full(4, 2.5))


def test_eval_errors():
    with pytest.raises(EvaluationError):
        parse("x+y").eval([1.0])
    with pytest.raises(EvaluationError):
        parse("1/x").eval([0.0], strict=True)
    with np.errstate(divide='ignore'):
        assert np.isinf(parse("1/x").eval([0.0]))
    with np.errstate(invalid='ignore'):
        assert np.isnan(parse("ln(x)").eval([-1.0]))


def test_unparse():
    assert str(parse("x*2")) == "{x}*2.0"
    assert str(parse("sin(x)+y")) == "sin({x})+{y}"
    assert str(parse("(x+y)*2")) == "({x}+{y})*2.0"
    assert str(parse("--x")) == "-(-({x}))"
    assert str(parse("{mass flow}^2")) == "{mass flow}^2.0"
    assert repr(parse("x")) == "Expression('{x}')"


def test_equality_and_hash():
    assert parse("x+1") == parse("x+1")
    assert hash(parse("sin(x)*y")) == hash(parse("sin(x)*y"))
    assert parse("x+1") != parse("x-1")
    assert len({parse("x"), parse("x"), parse("y")}) == 2


def test_tree_utils():
    e = parse("sin(x+1)*y-2")
    assert get_variables(e) == [(0, 'x'), (1, 'y')]
    assert get_constants(e) == [1.0, 2.0]
    assert sorted(get_binary_ops(e)) == ['*', '+', '-']
    assert get_unary_ops(e) == ['sin']
    assert get_operator_usage_counts(parse("x+y+sin(x+1)")) == {'+': 3, 'sin': 1}
    assert calculate_tree_depth(parse("x")) == 1
    assert calculate_tree_depth(e) == 2
    assert calculate_tree_depth(parse("(x+sin(y*(x+1)))*2")) == 4
    assert tree_size(parse("x")) == 1
    assert tree_size(e) == e.size() == 8
    depth_first = get_all_leaves(e)
    breadth_first = get_all_leaves(e, traversal_order='breadth_first')
    assert len(depth_first) == len(breadth_first)
    with pytest.raises(ValueError):
        get_all_leaves(e, traversal_order='sideways')


def test_validator():
    ops32 = make_default_operators(np.float32)
    assert ExpressionValidator.is_valid_expression(parse("sin(x)*y"))
    nested = Expression([ExpressionNode(parse("x", ops32))], registry=make_default_operators())
    assert not ExpressionValidator.is_valid_expression(nested)
    out_of_range = Expression([VariableNode(3, 'w')], var_names=['x'])
    assert not ExpressionValidator.is_valid_expression(out_of_range)
    with pytest.raises(MalformedTreeError):
        ExpressionValidator.validate("x")
