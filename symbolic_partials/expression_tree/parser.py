"""
Text to expression tree.

Grammar::

    expression := operand (binary_operator operand)*
    operand    := unary_operator operand | '(' expression ')' | number | variable

Unary operators (``-``, ``sin``, ...) bind to the operand directly after them,
so ``-x^2`` reads as ``(-x)^2`` and ``sin(x)^2`` as ``(sin(x))^2``. Variables
are plain identifiers or any text in braces (``{x_0}``, ``{mass flow}``) and
are indexed in alphabetical order of their names. The bare words ``inf`` and
``nan`` are numbers, a variable with one of those names needs braces.
"""

import re
from typing import Dict, List, NamedTuple, Optional

from ..errors import ExpressionParseError
from .core.node import Node, ConstantNode, VariableNode, ExpressionNode
from .core.operators import Operator, OperatorRegistry
from .expression import Expression

TOKEN_NUMBER = 'NUMBER'
TOKEN_VARIABLE = 'VARIABLE'
TOKEN_OPERATOR = 'OPERATOR'
TOKEN_LPAREN = 'LPAREN'
TOKEN_RPAREN = 'RPAREN'
TOKEN_EOF = 'EOF'

_NUMBER = r'(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|(?:inf|nan)\b)'
_BRACED_NAME = r'\{[^{}]+\}'
_NAME = r'[A-Za-z_][A-Za-z0-9_]*'


class Token(NamedTuple):
    kind: str
    text: str
    pos: int


class ExpressionParser:
    """Recursive descent parser over the operators of one registry"""

    def __init__(self, ops: OperatorRegistry):
        self._ops = ops
        symbols = sorted((op.symbol for op in ops if not re.fullmatch(_NAME, op.symbol)),
                         key=len, reverse=True)
        specs = [
            (_NUMBER, TOKEN_NUMBER),
            (_BRACED_NAME, TOKEN_VARIABLE),
            (_NAME, TOKEN_VARIABLE),
            (r'\(', TOKEN_LPAREN),
            (r'\)', TOKEN_RPAREN),
            (r'\s+', None),  # Skip whitespace
        ]
        if symbols:
            specs.insert(3, ('|'.join(re.escape(s) for s in symbols), TOKEN_OPERATOR))
        self._compiled_specs = [(re.compile(pattern), kind) for pattern, kind in specs]
        self._tokens: List[Token] = []
        self._index = 0
        self._var_indices: Dict[str, int] = {}

    def parse(self, text: str) -> Expression:
        self._tokens = self._tokenize(text)
        self._index = 0
        names = sorted({tok.text for tok in self._tokens if tok.kind == TOKEN_VARIABLE})
        self._var_indices = {name: i for i, name in enumerate(names)}

        expression = self._parse_expression()
        tok = self._peek()
        if tok.kind != TOKEN_EOF:
            raise ExpressionParseError(f"unexpected '{tok.text}' at position {tok.pos} in '{text}'")
        return expression.with_var_names(names)

    def _tokenize(self, text: str) -> List[Token]:
        tokens = []
        pos = 0
        while pos < len(text):
            for regex, kind in self._compiled_specs:
                match = regex.match(text, pos)
                if match:
                    if kind is not None:
                        tokens.append(self._classify(kind, match.group(0), pos))
                    pos = match.end()
                    break
            else:
                raise ExpressionParseError(f"unexpected character '{text[pos]}' at position {pos} in '{text}'")
        if not tokens:
            raise ExpressionParseError("cannot parse an empty expression")
        tokens.append(Token(TOKEN_EOF, "", len(text)))
        return tokens

    def _classify(self, kind: str, text: str, pos: int) -> Token:
        if kind != TOKEN_VARIABLE:
            return Token(kind, text, pos)
        if text.startswith('{'):
            name = text[1:-1].strip()
            if not name:
                raise ExpressionParseError(f"empty variable name at position {pos}")
            return Token(kind, name, pos)
        # named operators shadow plain identifiers; braces still reach such a variable
        if self._ops.find(text) is not None:
            return Token(TOKEN_OPERATOR, text, pos)
        return Token(kind, text, pos)

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _next(self) -> Token:
        tok = self._tokens[self._index]
        if tok.kind != TOKEN_EOF:
            self._index += 1
        return tok

    def _parse_expression(self) -> Expression:
        leaves = [self._parse_operand()]
        bin_ops = []
        while self._peek().kind == TOKEN_OPERATOR:
            tok = self._next()
            op = self._ops.find(tok.text)
            if op.binary is None:
                raise ExpressionParseError(f"'{tok.text}' at position {tok.pos} is not a binary operator")
            bin_ops.append(op)
            leaves.append(self._parse_operand())
        tok = self._peek()
        if tok.kind not in (TOKEN_RPAREN, TOKEN_EOF):
            raise ExpressionParseError(f"expected an operator before '{tok.text}' at position {tok.pos}")
        return Expression(leaves, bin_ops, registry=self._ops)

    def _parse_operand(self) -> Node:
        tok = self._next()
        if tok.kind == TOKEN_NUMBER:
            return ConstantNode(self._ops.number(tok.text))
        if tok.kind == TOKEN_VARIABLE:
            return VariableNode(self._var_indices[tok.text], tok.text)
        if tok.kind == TOKEN_LPAREN:
            inner = self._parse_expression()
            closing = self._next()
            if closing.kind != TOKEN_RPAREN:
                raise ExpressionParseError(f"missing ')' for '(' at position {tok.pos}")
            if inner.is_leaf:
                return inner.leaves[0]
            return ExpressionNode(inner)
        if tok.kind == TOKEN_OPERATOR:
            op = self._ops.find(tok.text)
            if op.unary is None:
                raise ExpressionParseError(f"'{tok.text}' at position {tok.pos} is not a unary operator")
            return self._apply_unary(op, self._parse_operand())
        if tok.kind == TOKEN_EOF:
            raise ExpressionParseError("unexpected end of expression")
        raise ExpressionParseError(f"unexpected '{tok.text}' at position {tok.pos}")

    def _apply_unary(self, op: Operator, operand: Node) -> ExpressionNode:
        # prefixes stack onto the unary chain of the operand they precede
        if isinstance(operand, ExpressionNode):
            inner = operand.expression
        else:
            inner = Expression.from_leaf(operand, self._ops)
        return ExpressionNode(inner.apply_unary(op.symbol))


def parse(text: str, ops: Optional[OperatorRegistry] = None) -> Expression:
    """
    Parse text into an expression tree governed by ``ops``.

    Args:
        text: Source text, e.g. ``"sin(x) - cos(x) + a"``
        ops: Operator registry; defaults to the shared float64 default catalog

    Returns:
        Expression with ``var_names`` set to the sorted variable names
    """
    if ops is None:
        from ..operators import make_default_operators
        ops = make_default_operators()
    return ExpressionParser(ops).parse(text)
