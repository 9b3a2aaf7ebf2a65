"""
Tree Utility Functions

Traversal and analysis helpers for flat expression trees. Nested
subexpressions are reached through ExpressionNode leaves.
"""

from typing import Dict, List, Tuple
from collections import Counter

from ..core.node import Node, ConstantNode, VariableNode, ExpressionNode
from ..expression import Expression


def get_all_leaves(expression: Expression, traversal_order: str = 'depth_first') -> List[Node]:
    """
    Get all leaves of the tree, including ExpressionNode leaves themselves.

    Args:
        expression: Root expression
        traversal_order: 'depth_first' (default) or 'breadth_first'

    Returns:
        List of all leaves over all nesting levels
    """
    if traversal_order == 'depth_first':
        return _depth_first_traversal(expression)
    elif traversal_order == 'breadth_first':
        return _breadth_first_traversal(expression)
    else:
        raise ValueError(f"Invalid traversal_order: {traversal_order}")


def _depth_first_traversal(expression: Expression) -> List[Node]:
    leaves = []
    for leaf in expression.leaves:
        leaves.append(leaf)
        if isinstance(leaf, ExpressionNode):
            leaves.extend(_depth_first_traversal(leaf.expression))
    return leaves


def _breadth_first_traversal(expression: Expression) -> List[Node]:
    """Breadth-first traversal (iterative, non-recursive)"""
    expressions_to_visit = [expression]
    all_leaves = []

    while expressions_to_visit:
        current = expressions_to_visit.pop(0)  # FIFO for breadth-first
        for leaf in current.leaves:
            all_leaves.append(leaf)
            if isinstance(leaf, ExpressionNode):
                expressions_to_visit.append(leaf.expression)

    return all_leaves


def iter_expressions(expression: Expression) -> List[Expression]:
    """The expression itself followed by every nested expression, depth first"""
    expressions = [expression]
    for leaf in expression.leaves:
        if isinstance(leaf, ExpressionNode):
            expressions.extend(iter_expressions(leaf.expression))
    return expressions


def calculate_tree_depth(expression: Expression) -> int:
    """
    Calculate the nesting depth of the tree.

    Returns:
        1 for an expression without nested subexpressions
    """
    nested = [calculate_tree_depth(leaf.expression)
              for leaf in expression.leaves if isinstance(leaf, ExpressionNode)]
    return 1 + max(nested, default=0)


def tree_size(expression: Expression) -> int:
    """Number of terminal leaves plus binary and unary operators over all levels"""
    size = len(expression.bin_ops) + len(expression.unary_ops)
    for leaf in expression.leaves:
        if isinstance(leaf, ExpressionNode):
            size += tree_size(leaf.expression)
        else:
            size += 1
    return size


def get_variables(expression: Expression) -> List[Tuple[int, str]]:
    """Distinct (index, name) pairs of all variables, sorted by index"""
    found = {(leaf.index, leaf.name) for leaf in get_all_leaves(expression)
             if isinstance(leaf, VariableNode)}
    return sorted(found)


def get_constants(expression: Expression) -> list:
    """Values of all constant leaves in depth-first order"""
    return [leaf.value for leaf in get_all_leaves(expression) if isinstance(leaf, ConstantNode)]


def get_binary_ops(expression: Expression) -> List[str]:
    return [op.symbol for expr in iter_expressions(expression) for op in expr.bin_ops]


def get_unary_ops(expression: Expression) -> List[str]:
    return [op.symbol for expr in iter_expressions(expression) for op in expr.unary_ops]


def get_operator_usage_counts(expression: Expression) -> Dict[str, int]:
    """How often each operator symbol occurs, binary and unary uses together"""
    return dict(Counter(get_binary_ops(expression) + get_unary_ops(expression)))
