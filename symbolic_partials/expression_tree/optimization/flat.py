"""
Flattened evaluation of expression trees.

flatten() turns a tree into a postfix program of operator codes, folding the
binary chains in the same priority order as Expression.eval(). The program runs
in a numba kernel over a whole sample matrix at once, which avoids the Python
recursion of the tree evaluator. Only operators of the default catalog have a
compiled counterpart.
"""

import numba
import numpy as np
from typing import List, Sequence, Tuple

from ...errors import EvaluationError, UnsupportedOperatorError
from ...logging_system import log_debug
from ..core.node import ConstantNode, VariableNode
from ..core.operators import (
    BINARY_FUNCS, BINARY_OP_MAP, FIRST_UNARY_OP, UNARY_FUNCS, UNARY_OP_MAP, Operator, OpType
)
from ..core.reduction import reduce_by_priority
from ..expression import Expression
from ..utils.tree_utils import get_variables

_PUSH_CONSTANT = -1
_PUSH_VARIABLE = -2
_FIRST_UNARY = int(FIRST_UNARY_OP)

Instruction = Tuple[int, float, int]


@numba.njit(cache=True, error_model='numpy')
def _apply_binary(left_val, right_val, op_type):
    if op_type == OpType.ADD:
        return left_val + right_val
    elif op_type == OpType.SUB:
        return left_val - right_val
    elif op_type == OpType.MUL:
        return left_val * right_val
    elif op_type == OpType.DIV:
        return left_val / right_val
    elif op_type == OpType.POW:
        return np.power(left_val, right_val)
    return np.full_like(left_val, np.nan)


@numba.njit(cache=True, error_model='numpy')
def _apply_unary(operand_val, op_type):
    if op_type == OpType.POS:
        return operand_val.copy()
    elif op_type == OpType.NEG:
        return -operand_val
    elif op_type == OpType.SIN:
        return np.sin(operand_val)
    elif op_type == OpType.COS:
        return np.cos(operand_val)
    elif op_type == OpType.TAN:
        return np.tan(operand_val)
    elif op_type == OpType.ASIN:
        return np.arcsin(operand_val)
    elif op_type == OpType.ACOS:
        return np.arccos(operand_val)
    elif op_type == OpType.ATAN:
        return np.arctan(operand_val)
    elif op_type == OpType.SINH:
        return np.sinh(operand_val)
    elif op_type == OpType.COSH:
        return np.cosh(operand_val)
    elif op_type == OpType.TANH:
        return np.tanh(operand_val)
    elif op_type == OpType.EXP:
        return np.exp(operand_val)
    elif op_type == OpType.LN:
        return np.log(operand_val)
    elif op_type == OpType.LOG2:
        return np.log2(operand_val)
    elif op_type == OpType.LOG10:
        return np.log10(operand_val)
    elif op_type == OpType.SQRT:
        return np.sqrt(operand_val)
    elif op_type == OpType.CBRT:
        return np.cbrt(operand_val)
    elif op_type == OpType.ABS:
        return np.abs(operand_val)
    elif op_type == OpType.SIGNUM:
        return np.sign(operand_val)
    return np.full_like(operand_val, np.nan)


@numba.njit(cache=True, error_model='numpy')
def _execute(codes, constants, indices, X, max_depth):
    n_samples = X.shape[0]
    stack = np.empty((max_depth, n_samples), dtype=np.float64)
    top = 0
    for k in range(codes.shape[0]):
        code = codes[k]
        if code == _PUSH_CONSTANT:
            stack[top, :] = constants[k]
            top += 1
        elif code == _PUSH_VARIABLE:
            stack[top, :] = X[:, indices[k]]
            top += 1
        elif code < _FIRST_UNARY:
            stack[top - 2, :] = _apply_binary(stack[top - 2], stack[top - 1], code)
            top -= 1
        else:
            stack[top - 1, :] = _apply_unary(stack[top - 1], code)
    return stack[0].copy()


class FlatExpression:
    """Postfix program of one expression tree, evaluated in float64"""

    __slots__ = ('codes', 'constants', 'indices', 'n_vars', 'max_depth', 'source')

    def __init__(self, instructions: Sequence[Instruction], n_vars: int, source: str = ""):
        self.codes = np.array([code for code, _, _ in instructions], dtype=np.int64)
        self.constants = np.array([value for _, value, _ in instructions], dtype=np.float64)
        self.indices = np.array([index for _, _, index in instructions], dtype=np.int64)
        self.n_vars = n_vars
        self.max_depth = _stack_depth(self.codes)
        self.source = source

    def __len__(self) -> int:
        return len(self.codes)

    def __repr__(self) -> str:
        return f"FlatExpression('{self.source}', {len(self)} instructions)"

    def evaluate(self, X: np.ndarray) -> np.ndarray:
        """Evaluate on a sample matrix with one column per variable index"""
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if X.ndim != 2:
            raise EvaluationError(f"expected a 2D sample matrix, got {X.ndim} dimensions")
        if X.shape[1] < self.n_vars:
            raise EvaluationError(
                f"expression uses {self.n_vars} variable(s), sample matrix has {X.shape[1]} column(s)")
        return _execute(self.codes, self.constants, self.indices, np.ascontiguousarray(X), self.max_depth)

    def eval(self, values: Sequence = ()):
        """Evaluate with ``values[i]`` bound to variable i; values broadcast against each other"""
        arrays = [np.asarray(v, dtype=np.float64) for v in values]
        if arrays:
            arrays = np.broadcast_arrays(*arrays)
            shape = arrays[0].shape
            X = np.column_stack([a.ravel() for a in arrays])
        else:
            shape = ()
            X = np.empty((1, 0), dtype=np.float64)
        result = self.evaluate(X)
        if shape:
            return result.reshape(shape)
        return result[0]


def _stack_depth(codes: np.ndarray) -> int:
    depth = 0
    max_depth = 1
    for code in codes:
        if code < 0:
            depth += 1
        elif code < _FIRST_UNARY:
            depth -= 1
        max_depth = max(max_depth, depth)
    return max_depth


def _op_code(op: Operator, binary: bool) -> int:
    if binary:
        funcs, op_map = BINARY_FUNCS, BINARY_OP_MAP
        func = op.binary
    else:
        funcs, op_map = UNARY_FUNCS, UNARY_OP_MAP
        func = op.unary
    # a custom function under a built-in symbol has no kernel either
    if op.symbol not in op_map or funcs.get(op.symbol) is not func:
        raise UnsupportedOperatorError(op.symbol, "no compiled kernel for this operator")
    return int(op_map[op.symbol])


def _program(expression: Expression) -> List[Instruction]:
    leaf_programs = []
    for leaf in expression.leaves:
        if isinstance(leaf, ConstantNode):
            leaf_programs.append([(_PUSH_CONSTANT, float(leaf.value), 0)])
        elif isinstance(leaf, VariableNode):
            leaf_programs.append([(_PUSH_VARIABLE, 0.0, leaf.index)])
        else:
            leaf_programs.append(_program(leaf.expression))

    program = reduce_by_priority(
        leaf_programs, expression.bin_ops,
        lambda op, left, right: left + right + [(_op_code(op, binary=True), 0.0, 0)])
    for op in reversed(expression.unary_ops):
        program.append((_op_code(op, binary=False), 0.0, 0))
    return program


def flatten(expression: Expression) -> FlatExpression:
    """
    Compile an expression tree into a FlatExpression.

    Raises:
        UnsupportedOperatorError: an operator is not one of the built-in operators
    """
    instructions = _program(expression)
    n_vars = max((index for index, _ in get_variables(expression)), default=-1) + 1
    flat = FlatExpression(instructions, n_vars, source=expression.unparse())
    log_debug(f"flattened {flat.source} into {len(flat)} instructions (stack depth {flat.max_depth})")
    return flat
