"""
Risp Builtin Operators
======================
The closed operator set of the control language.

Operators that need their arguments unevaluated (``and``, ``or``, ``if``,
``cond``) or take none (``now``) are special forms handled by the
evaluator; everything else is a strict function over already-evaluated
values implemented here.

Word aliases (``add``, ``sub``, ``mul``, ``div``, ``rem``) mirror the
symbolic spellings.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

from reef.risp.errors import ArityError, DivisionByZeroError, TypeMismatchError
from reef.risp.values import (
    SECONDS_PER_DAY,
    Boolean,
    Duration,
    Instant,
    Number,
    Value,
)

# name -> canonical operator
OPERATORS: dict[str, str] = {
    ">": ">",
    "<": "<",
    "==": "==",
    "+": "+",
    "add": "+",
    "-": "-",
    "sub": "-",
    "*": "*",
    "mul": "*",
    "/": "/",
    "div": "/",
    "%": "%",
    "rem": "%",
    "and": "and",
    "or": "or",
    "not": "not",
    "if": "if",
    "cond": "cond",
    "now": "now",
}

SPECIAL_FORMS = frozenset({"and", "or", "if", "cond", "now"})

_ORDERED = "number, duration or instant"


def canonical(name: str) -> str:
    return OPERATORS[name]


# ==================== Comparison ====================


def compare_chain(op: str, values: Sequence[Value]) -> Boolean:
    """
    Evaluate ``(> a b c ...)``, ``(< ...)`` or ``(== ...)``.

    A chain holds iff every adjacent pair holds. When any operand is a clock
    instant, instants are compared by time of day; chains of three or more
    clock readings are read as a window on the 24-hour dial (see
    :func:`_clock_window`).
    """
    if len(values) < 2:
        raise ArityError(op, "2+", len(values))

    kinds = {value.kind for value in values}
    if len(kinds) > 1:
        raise TypeMismatchError(op, f"operands of one kind ({values[0].kind})", _describe_kinds(values))
    kind = values[0].kind

    if op == "==":
        keys = [_key(value, clock=_has_clock(values)) for value in values]
        return Boolean(all(a == b for a, b in zip(keys, keys[1:])))

    if kind not in ("number", "duration", "instant"):
        raise TypeMismatchError(op, _ORDERED, kind)

    clock = _has_clock(values)
    keys = [_key(value, clock=clock) for value in values]

    if clock and len(keys) >= 3:
        return Boolean(_clock_window(op, keys))

    if op == ">":
        return Boolean(all(a > b for a, b in zip(keys, keys[1:])))
    return Boolean(all(a < b for a, b in zip(keys, keys[1:])))


def _clock_window(op: str, keys: list[int]) -> bool:
    """
    ``(> open t close)``: walking forward around the dial from ``open``
    reaches ``t`` strictly before ``close``. ``<`` walks backward.
    """
    start = keys[0]
    if op == ">":
        offsets = [(key - start) % SECONDS_PER_DAY for key in keys[1:]]
    else:
        offsets = [(start - key) % SECONDS_PER_DAY for key in keys[1:]]
    if offsets[0] == 0:
        return False
    return all(a < b for a, b in zip(offsets, offsets[1:]))


def _has_clock(values: Sequence[Value]) -> bool:
    return any(isinstance(value, Instant) and value.of_day for value in values)


def _key(value: Value, *, clock: bool):
    if isinstance(value, Instant):
        return value.time_of_day if clock else value.seconds
    if isinstance(value, Duration):
        return value.seconds
    return value.value


def _describe_kinds(values: Sequence[Value]) -> str:
    return ", ".join(value.kind for value in values)


# ==================== Arithmetic ====================


def arithmetic(op: str, values: Sequence[Value]) -> Value:
    """Left fold of a binary arithmetic operator; unary ``-`` negates."""
    minimum = 2 if op in ("/", "%") else 1
    if len(values) < minimum:
        raise ArityError(op, f"{minimum}+", len(values))

    if len(values) == 1:
        return _unary(op, values[0])

    binary = _BINARY[op]
    result = values[0]
    for operand in values[1:]:
        result = binary(op, result, operand)
    return result


def _unary(op: str, value: Value) -> Value:
    if op == "-":
        if isinstance(value, Number):
            return Number(-value.value)
        if isinstance(value, Duration):
            return Duration(-value.seconds)
        raise TypeMismatchError(op, "number or duration", value.kind)
    if isinstance(value, (Number, Duration, Instant)):
        return value
    raise TypeMismatchError(op, _ORDERED, value.kind)


def _add(op: str, a: Value, b: Value) -> Value:
    if isinstance(a, Number) and isinstance(b, Number):
        return Number(a.value + b.value)
    if isinstance(a, Duration) and isinstance(b, Duration):
        return Duration(a.seconds + b.seconds)
    if isinstance(a, Instant) and isinstance(b, Duration):
        return Instant(a.seconds + b.seconds, of_day=a.of_day)
    if isinstance(a, Duration) and isinstance(b, Instant):
        return Instant(b.seconds + a.seconds, of_day=b.of_day)
    raise _mismatch(op, a, b)


def _sub(op: str, a: Value, b: Value) -> Value:
    if isinstance(a, Number) and isinstance(b, Number):
        return Number(a.value - b.value)
    if isinstance(a, Duration) and isinstance(b, Duration):
        return Duration(a.seconds - b.seconds)
    if isinstance(a, Instant) and isinstance(b, Duration):
        return Instant(a.seconds - b.seconds, of_day=a.of_day)
    if isinstance(a, Instant) and isinstance(b, Instant):
        if a.of_day or b.of_day:
            return Duration((a.time_of_day - b.time_of_day) % SECONDS_PER_DAY)
        return Duration(a.seconds - b.seconds)
    raise _mismatch(op, a, b)


def _mul(op: str, a: Value, b: Value) -> Value:
    if isinstance(a, Number) and isinstance(b, Number):
        return Number(a.value * b.value)
    if isinstance(a, Duration) and isinstance(b, Number):
        return Duration(_whole_seconds(op, a.seconds * b.value))
    if isinstance(a, Number) and isinstance(b, Duration):
        return Duration(_whole_seconds(op, a.value * b.seconds))
    raise _mismatch(op, a, b)


def _div(op: str, a: Value, b: Value) -> Value:
    if isinstance(a, Number) and isinstance(b, Number):
        if b.value == 0:
            raise DivisionByZeroError(op)
        return Number(a.value / b.value)
    if isinstance(a, Duration) and isinstance(b, Number):
        if b.value == 0:
            raise DivisionByZeroError(op)
        return Duration(_whole_seconds(op, a.seconds / b.value))
    if isinstance(a, Duration) and isinstance(b, Duration):
        if b.seconds == 0:
            raise DivisionByZeroError(op)
        return Number(a.seconds / b.seconds)
    raise _mismatch(op, a, b)


def _rem(op: str, a: Value, b: Value) -> Value:
    if isinstance(a, Number) and isinstance(b, Number):
        if b.value == 0:
            raise DivisionByZeroError(op)
        return Number(math.fmod(a.value, b.value))
    if isinstance(a, Duration) and isinstance(b, Duration):
        if b.seconds == 0:
            raise DivisionByZeroError(op)
        return Duration(int(math.fmod(a.seconds, b.seconds)))
    raise _mismatch(op, a, b)


_BINARY: dict[str, Callable[[str, Value, Value], Value]] = {
    "+": _add,
    "-": _sub,
    "*": _mul,
    "/": _div,
    "%": _rem,
}


def _whole_seconds(op: str, seconds: float) -> int:
    if not math.isfinite(seconds):
        raise TypeMismatchError(op, "finite duration", "non-finite number")
    return round(seconds)


def _mismatch(op: str, a: Value, b: Value) -> TypeMismatchError:
    return TypeMismatchError(op, "compatible operands", f"{a.kind} and {b.kind}")


# ==================== Boolean ====================


def negate(op: str, values: Sequence[Value]) -> Boolean:
    if len(values) != 1:
        raise ArityError(op, "1", len(values))
    value = values[0]
    if not isinstance(value, Boolean):
        raise TypeMismatchError(op, "boolean", value.kind)
    return Boolean(not value.value)


STRICT_BUILTINS: dict[str, Callable[[str, Sequence[Value]], Value]] = {
    ">": compare_chain,
    "<": compare_chain,
    "==": compare_chain,
    "+": arithmetic,
    "-": arithmetic,
    "*": arithmetic,
    "/": arithmetic,
    "%": arithmetic,
    "not": negate,
}


__all__ = ["OPERATORS", "SPECIAL_FORMS", "STRICT_BUILTINS", "arithmetic", "canonical", "compare_chain", "negate"]
