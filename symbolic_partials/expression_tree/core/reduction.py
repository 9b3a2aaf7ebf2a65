"""
Priority reduction of a binary operator chain.

A chain ``l0 op0 l1 op1 l2 ...`` is folded by consuming operators in order of
descending precedence, ties going left to right. Evaluation, flattening,
conversion to SymPy and differentiation all fold through reduce_by_priority()
so that every consumer combines exactly the same pairs of leaves.
"""

from typing import Callable, List, Sequence, TypeVar

from ...errors import MalformedTreeError
from .operators import Operator

T = TypeVar('T')


def prioritized_indices(bin_ops: Sequence[Operator]) -> List[int]:
    """
    Fold order of a binary chain.

    Args:
        bin_ops: Operators of the chain; ``bin_ops[i]`` connects leaf i and leaf i+1

    Returns:
        Permutation of chain indices, highest precedence first, ties by source position
    """
    # sorted() is stable, also with reverse=True
    return sorted(range(len(bin_ops)), key=lambda idx: bin_ops[idx].prio, reverse=True)


def reduce_by_priority(values: Sequence[T], bin_ops: Sequence[Operator],
                       fold: Callable[[Operator, T, T], T]) -> T:
    """
    Fold leaf values pairwise in priority order until one value remains.

    Args:
        values: One value per leaf
        bin_ops: The binary chain, one shorter than ``values``
        fold: Called as ``fold(op, left, right)`` for each chain entry

    Returns:
        The single remaining value
    """
    values = list(values)
    if len(values) != len(bin_ops) + 1:
        raise MalformedTreeError(
            f"binary chain of length {len(bin_ops)} does not fit {len(values)} leaves")

    order = prioritized_indices(bin_ops)
    positions = list(order)
    for k, op_idx in enumerate(order):
        pos = positions[k]
        values[pos] = fold(bin_ops[op_idx], values[pos], values[pos + 1])
        del values[pos + 1]
        # leaves right of the merged pair moved one slot to the left
        for j in range(k + 1, len(positions)):
            if positions[j] > pos:
                positions[j] -= 1
    return values[0]
