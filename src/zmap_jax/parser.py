"""Precedence-climbing compiler from tokens to expression trees.

Operators group by declared precedence (higher binds tighter) and
associate to the left. A function name applies either to a parenthesized,
comma-separated argument list or, without parentheses, to the single
primary that follows it. An operator in primary position is a prefix
application and is accepted only if its arity range admits one operand.
"""

from __future__ import annotations

import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Final, Iterator, TypeVar

from .ast import Call, Expr, Literal, VariableRef
from .config import EngineConfig
from .errors import ParseError
from .lexer import Token, tokenize
from .symbols import Applicable, CallKind

_R = TypeVar("_R")


@dataclass
class _Parser:
    tokens: list[Token]
    max_nesting: int
    index: int = 0
    depth: int = 0

    def parse_expression_only(self) -> Expr:
        if self._peek().kind == "EOF":
            raise ParseError("empty", 0)
        expr = self._parse_binary(None)
        tok = self._peek()
        if tok.kind == "RPAREN":
            raise ParseError("unbalanced", tok.pos, tok.end)
        if tok.kind != "EOF":
            raise ParseError("trailing", tok.pos, tok.end)
        return expr

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        tok = self.tokens[self.index]
        self.index += 1
        return tok

    def _nested(self, tok: Token, parse: Callable[[int | None], _R], min_precedence: int | None) -> _R:
        self.depth += 1
        try:
            if self.depth > self.max_nesting:
                raise ParseError("too-deep", tok.pos, tok.end)
            return parse(min_precedence)
        finally:
            self.depth -= 1

    def _parse_binary(self, min_precedence: int | None) -> Expr:
        left = self._parse_primary(min_precedence)
        while True:
            tok = self._peek()
            if tok.kind != "OPERATOR":
                return left
            entry: Applicable = tok.value
            if min_precedence is not None and entry.precedence < min_precedence:
                return left
            if not entry.accepts(2):
                raise ParseError("arity", tok.pos, tok.end)
            self._advance()
            # Threshold above the operator's own precedence keeps equal-precedence
            # chains for the loop, hence left associativity.
            right = self._nested(tok, self._parse_binary, entry.precedence + 1)
            left = Call(CallKind.OPERATOR, tok.text, (left, right), entry, tok.pos)

    def _parse_primary(self, min_precedence: int | None = None) -> Expr:
        tok = self._peek()

        if tok.kind == "LITERAL":
            self._advance()
            return Literal(tok.text, tok.value, tok.pos)

        if tok.kind == "VARIABLE":
            self._advance()
            return VariableRef(tok.text, tok.pos)

        if tok.kind == "LPAREN":
            self._advance()
            expr = self._nested(tok, self._parse_binary, None)
            self._expect_close(tok)
            return expr

        if tok.kind == "FUNCTION":
            return self._parse_function(self._advance())

        if tok.kind == "OPERATOR":
            entry: Applicable = tok.value
            if not entry.accepts(1):
                raise ParseError("unexpected", tok.pos, tok.end)
            self._advance()
            threshold = entry.precedence + 1
            if min_precedence is not None:
                threshold = max(threshold, min_precedence)
            operand = self._nested(tok, self._parse_binary, threshold)
            return Call(CallKind.OPERATOR, tok.text, (operand,), entry, tok.pos)

        if tok.kind == "RPAREN" and self.depth == 0:
            raise ParseError("unbalanced", tok.pos, tok.end)
        raise ParseError("unexpected", tok.pos, tok.end)

    def _expect_close(self, opening: Token) -> Token:
        tok = self._peek()
        if tok.kind == "RPAREN":
            return self._advance()
        if tok.kind == "EOF":
            raise ParseError("unbalanced", opening.pos, opening.end)
        raise ParseError("unexpected", tok.pos, tok.end)

    def _parse_function(self, name_tok: Token) -> Call:
        entry: Applicable = name_tok.value

        if self._peek().kind != "LPAREN":
            if not entry.accepts(1):
                raise ParseError("arity", name_tok.pos, name_tok.end)
            arg = self._nested(name_tok, self._parse_primary, None)
            return Call(CallKind.FUNCTION, name_tok.text, (arg,), entry, name_tok.pos)

        opening = self._advance()
        args: list[Expr] = []
        if self._peek().kind != "RPAREN":
            args.append(self._nested(opening, self._parse_binary, None))
            while self._peek().kind == "COMMA":
                comma = self._peek()
                if len(args) >= entry.max_arity:
                    raise ParseError("arity", comma.pos, comma.end)
                self._advance()
                args.append(self._nested(comma, self._parse_binary, None))
        closing = self._expect_close(opening)

        if not entry.accepts(len(args)):
            raise ParseError("arity", opening.pos, closing.end)
        return Call(CallKind.FUNCTION, name_tok.text, tuple(args), entry, name_tok.pos)


# Worst case per nesting level: _nested -> _parse_binary -> _parse_primary -> _parse_function.
_FRAMES_PER_LEVEL: Final = 4
_FRAME_MARGIN: Final = 64

_budget_lock = threading.Lock()
_budget_users = 0
_saved_limit = 0


@contextmanager
def _frame_budget(levels: int) -> Iterator[None]:
    """Raise the interpreter recursion limit enough for `levels` of nesting.

    The limit is process-wide; it is restored once the last concurrent
    parse leaves.
    """
    global _budget_users, _saved_limit
    extra = levels * _FRAMES_PER_LEVEL + _FRAME_MARGIN
    with _budget_lock:
        if _budget_users == 0:
            _saved_limit = sys.getrecursionlimit()
        _budget_users += 1
        sys.setrecursionlimit(max(sys.getrecursionlimit(), _saved_limit + extra))
    try:
        yield
    finally:
        with _budget_lock:
            _budget_users -= 1
            if _budget_users == 0:
                sys.setrecursionlimit(_saved_limit)


def parse(source: str, config: EngineConfig) -> Expr:
    """Tokenize and compile `source`; raises `ParseError` with an offset."""
    tokens = tokenize(source, config)
    parser = _Parser(tokens, max_nesting=config.max_nesting)
    with _frame_budget(config.max_nesting):
        try:
            return parser.parse_expression_only()
        except RecursionError:
            tok = parser._peek()
            raise ParseError("too-deep", tok.pos, tok.end) from None


__all__ = ["ParseError", "parse"]
