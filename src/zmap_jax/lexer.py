"""Tokenization driven by configurable literal predicates and symbol tables."""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import EngineConfig
from .errors import ParseError


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int
    end: int
    value: object = field(default=None, compare=False, repr=False)


_PUNCTUATION = {
    "(": "LPAREN",
    ")": "RPAREN",
    ",": "COMMA",
}

_LITERAL_FAILURES = (ValueError, ArithmeticError, TypeError)


def _scan_while(source: str, start: int, predicate) -> int:
    i = start
    while i < len(source) and predicate(source[i]):
        i += 1
    return i


def _match_name(config: EngineConfig, source: str, start: int) -> Token | None:
    # Longest match wins; on equal length the table order decides.
    best: Token | None = None
    for kind, store in (
        ("FUNCTION", config.functions),
        ("OPERATOR", config.operators),
        ("VARIABLE", config.variables),
    ):
        hit = store.longest_match(source, start)
        if hit is None:
            continue
        name, entry = hit
        if best is None or len(name) > len(best.text):
            best = Token(kind, name, start, start + len(name), entry)
    return best


def tokenize(source: str, config: EngineConfig) -> list[Token]:
    tokens: list[Token] = []
    i = 0

    while i < len(source):
        ch = source[i]

        if ch.isspace():
            i += 1
            continue

        if ch in _PUNCTUATION:
            tokens.append(Token(_PUNCTUATION[ch], ch, i, i + 1))
            i += 1
            continue

        if config.starts_literal(ch):
            end = _scan_while(source, i + 1, config.continues_literal)
            text = source[i:end]
            try:
                value = config.make_literal(text)
            except _LITERAL_FAILURES as exc:
                raise ParseError("literal", i, end) from exc
            tokens.append(Token("LITERAL", text, i, end, value))
            i = end
            continue

        named = _match_name(config, source, i)
        if named is None:
            end = _scan_while(source, i + 1, str.isalnum) if ch.isalnum() else i + 1
            raise ParseError("unknown-identifier", i, end)
        tokens.append(named)
        i = named.end

    tokens.append(Token("EOF", "", len(source), len(source)))
    return tokens
