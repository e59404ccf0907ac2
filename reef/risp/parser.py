"""
Risp Parser
===========
Turns Risp text into an immutable expression tree.

Parsing runs in two passes: the reader tokenizes and groups parentheses into
raw forms (catching unbalanced input), then the builder classifies leaf
tokens by lexical shape and turns forms into ``Call`` / ``Clause`` nodes.

Leaf classification:
    Number    ``80``, ``-1.5``, ``.5``, ``1e3``
    Duration  ``PT5M``, ``P1DT2H``, ``-PT30S``
    Instant   ``HH:MM:SS`` clock readings; ``now`` is the same as ``(now)``
    Boolean   ``true``, ``false``, ``t``
    Symbol    channel names such as ``Tank_Temperature``

Forms:
    ``(op a1 a2 ...)``     builtin call
    ``(x)``                grouping, parses to ``x`` itself
    ``(cond (test result) ...)``
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Union

from reef.risp.builtins import OPERATORS
from reef.risp.errors import RispSyntaxError
from reef.risp.nodes import Call, Clause, Literal, Node, SymbolRef
from reef.risp.values import FALSE, TRUE, Duration, Instant, Number

logger = logging.getLogger(__name__)

MAX_DEPTH = 128


@dataclass
class Token:
    """Token from the lexer."""

    type: str  # LPAREN, RPAREN, ATOM
    value: str
    pos: int = 0


class Lexer:
    """Tokenize Risp text."""

    PATTERNS = [
        ("WHITESPACE", re.compile(r"\s+")),
        ("LPAREN", re.compile(r"\(")),
        ("RPAREN", re.compile(r"\)")),
        ("ATOM", re.compile(r"[^\s()]+")),
    ]

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while self.pos < len(self.text):
            for token_type, pattern in self.PATTERNS:
                match = pattern.match(self.text, self.pos)
                if match:
                    if token_type != "WHITESPACE":
                        tokens.append(Token(token_type, match.group(0), self.pos))
                    self.pos = match.end()
                    break
        return tokens


@dataclass
class _Form:
    items: list["_Raw"]
    pos: int


_Raw = Union[Token, _Form]


_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_CLOCK_RE = re.compile(r"^(\d{2}):(\d{2}):(\d{2})$")
_DURATION_SHAPE_RE = re.compile(r"^-?P(?=.*\d)[0-9DTHMS]+$")
_SYMBOL_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")

_BOOLEANS = {"true": TRUE, "t": TRUE, "false": FALSE}


def parse(text: str) -> Node:
    """
    Parse one Risp expression.

    Args:
        text: Risp source, e.g. ``(if (> 06:00:00 (now) 18:00:00) 1 0)``

    Returns:
        The expression tree. The same text always yields an equal tree.

    Raises:
        RispSyntaxError: on unbalanced parentheses, empty forms, unrecognized
            tokens, unknown operators or trailing input.
    """
    tokens = Lexer(text).tokenize()
    if not tokens:
        raise RispSyntaxError(0, "empty expression")

    raw, index = _read(tokens, 0, 0)
    if index < len(tokens):
        extra = tokens[index]
        if extra.type == "RPAREN":
            raise RispSyntaxError(extra.pos, "unbalanced parentheses: unexpected ')'")
        raise RispSyntaxError(extra.pos, "unexpected trailing input")

    node = _build(raw)
    logger.debug("Parsed %r -> %r", text, node)
    return node


def _read(tokens: list[Token], index: int, depth: int) -> tuple[_Raw, int]:
    """Read one raw expression starting at ``tokens[index]``."""
    if depth > MAX_DEPTH:
        raise RispSyntaxError(tokens[index].pos, "expression nested too deeply")

    token = tokens[index]
    if token.type == "ATOM":
        return token, index + 1
    if token.type == "RPAREN":
        raise RispSyntaxError(token.pos, "unbalanced parentheses: unexpected ')'")

    items: list[_Raw] = []
    index += 1
    while index < len(tokens):
        if tokens[index].type == "RPAREN":
            return _Form(items, token.pos), index + 1
        item, index = _read(tokens, index, depth + 1)
        items.append(item)
    raise RispSyntaxError(token.pos, "unbalanced parentheses: '(' is never closed")


def _build(raw: _Raw) -> Node:
    if isinstance(raw, Token):
        return _classify(raw)

    if not raw.items:
        raise RispSyntaxError(raw.pos, "empty form")

    head, args = raw.items[0], raw.items[1:]
    if isinstance(head, Token) and head.value in OPERATORS:
        if head.value == "cond":
            return Call("cond", tuple(_build_clause(arg) for arg in args))
        return Call(head.value, tuple(_build(arg) for arg in args))

    if not args:
        return _build(head)

    if isinstance(head, Token) and _SYMBOL_RE.match(head.value) and head.value not in _BOOLEANS:
        raise RispSyntaxError(head.pos, f"unknown operator '{head.value}'")
    raise RispSyntaxError(head.pos, "form must start with an operator")


def _build_clause(raw: _Raw) -> Clause:
    if not isinstance(raw, _Form) or len(raw.items) != 2:
        raise RispSyntaxError(raw.pos, "cond clause must be a (test result) pair")
    test, result = raw.items
    return Clause(_build(test), _build(result))


def _classify(token: Token) -> Node:
    """Classify a leaf token by its lexical shape."""
    text = token.value

    if text == "now":
        return Call("now")
    if text in _BOOLEANS:
        return Literal(_BOOLEANS[text])
    if _NUMBER_RE.match(text):
        return Literal(Number(float(text)))

    clock = _CLOCK_RE.match(text)
    if clock:
        hour, minute, second = (int(part) for part in clock.groups())
        if hour > 23 or minute > 59 or second > 59:
            raise RispSyntaxError(token.pos, f"unrecognized literal token '{text}': invalid time of day")
        return Literal(Instant.clock(hour, minute, second))

    if _DURATION_SHAPE_RE.match(text):
        duration = Duration.parse(text)
        if duration is None:
            raise RispSyntaxError(token.pos, f"unrecognized literal token '{text}': malformed duration")
        return Literal(duration)

    if text in OPERATORS:
        raise RispSyntaxError(token.pos, f"operator '{text}' must be called as a form")

    if _SYMBOL_RE.match(text):
        return SymbolRef(text)

    raise RispSyntaxError(token.pos, f"unrecognized literal token '{text}'")


def is_symbol_name(text: str) -> bool:
    """Return True if a program reading ``text`` refers to the channel of that name."""
    if not _SYMBOL_RE.match(text):
        return False
    try:
        node = _classify(Token("ATOM", text))
    except RispSyntaxError:
        return False
    return isinstance(node, SymbolRef)


__all__ = ["Lexer", "Token", "is_symbol_name", "parse"]
