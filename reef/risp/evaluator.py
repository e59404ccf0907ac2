"""
Risp Evaluator
==============
Reduces an expression tree to a Value against a read-only state snapshot.

Evaluation is pure: it never touches shared state or devices. The only
inputs are the snapshot, the evaluating channel's prior value and the
wall clock, which is read once per call so that every ``(now)`` inside one
evaluation agrees.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Union

from reef.risp.builtins import OPERATORS, STRICT_BUILTINS, canonical
from reef.risp.errors import (
    ArityError,
    NoMatchingClauseError,
    TypeMismatchError,
    UndefinedSymbolError,
)
from reef.risp.nodes import Call, Clause, Literal, Node, SymbolRef
from reef.risp.values import FALSE, TRUE, Boolean, Instant, Value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Context:
    snapshot: Mapping[str, Value]
    self_prior: Optional[Value]
    channel: Optional[str]
    now: Instant


def evaluate(
    node: Node,
    state_snapshot: Mapping[str, Value],
    self_prior_value: Optional[Value] = None,
    *,
    channel: Optional[str] = None,
    now: Union[Instant, datetime, None] = None,
) -> Value:
    """
    Evaluate one program.

    Args:
        node: Parsed expression tree
        state_snapshot: Point-in-time view of committed channel values
        self_prior_value: The evaluating channel's previous value
        channel: Name of the evaluating channel; references to it resolve to
            ``self_prior_value`` rather than the snapshot
        now: Fixed clock reading for this evaluation (defaults to local time)

    Raises:
        UndefinedSymbolError, TypeMismatchError, ArityError,
        DivisionByZeroError
    """
    if now is None:
        captured = Instant.from_datetime(datetime.now())
    elif isinstance(now, datetime):
        captured = Instant.from_datetime(now)
    else:
        captured = now

    ctx = _Context(
        snapshot=state_snapshot,
        self_prior=self_prior_value,
        channel=channel,
        now=captured,
    )
    return _eval(node, ctx)


def _eval(node: Node, ctx: _Context) -> Value:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, SymbolRef):
        return _lookup(node.name, ctx)
    if isinstance(node, Call):
        return _call(node, ctx)
    if isinstance(node, Clause):
        raise TypeMismatchError("cond", "expression", "clause outside cond")
    raise TypeError(f"Not a Risp node: {node!r}")


def _lookup(name: str, ctx: _Context) -> Value:
    if ctx.channel is not None and name == ctx.channel:
        if ctx.self_prior is None:
            raise UndefinedSymbolError(name)
        return ctx.self_prior
    value = ctx.snapshot.get(name)
    if value is None:
        raise UndefinedSymbolError(name)
    return value


def _call(node: Call, ctx: _Context) -> Value:
    if node.operator not in OPERATORS:
        raise TypeMismatchError(node.operator, "builtin operator", "unknown operator")
    op = canonical(node.operator)
    args = node.args

    if op == "now":
        if args:
            raise ArityError(node.operator, "0", len(args))
        return ctx.now

    if op == "if":
        if len(args) != 3:
            raise ArityError(node.operator, "3", len(args))
        test = _require_boolean(node.operator, _eval(args[0], ctx))
        return _eval(args[1] if test else args[2], ctx)

    if op == "cond":
        return _cond(node, ctx)

    if op == "and":
        for arg in args:
            if not _require_boolean(node.operator, _eval(arg, ctx)):
                return FALSE
        return TRUE

    if op == "or":
        for arg in args:
            if _require_boolean(node.operator, _eval(arg, ctx)):
                return TRUE
        return FALSE

    values = [_eval(arg, ctx) for arg in args]
    return STRICT_BUILTINS[op](op, values)


def _cond(node: Call, ctx: _Context) -> Value:
    if not node.args:
        raise ArityError(node.operator, "1+", 0)
    for clause in node.args:
        if not isinstance(clause, Clause):
            raise TypeMismatchError(node.operator, "(test result) clause", "expression")
        if _require_boolean(node.operator, _eval(clause.test, ctx)):
            return _eval(clause.result, ctx)
    raise NoMatchingClauseError()


def _require_boolean(op: str, value: Value) -> bool:
    if not isinstance(value, Boolean):
        raise TypeMismatchError(op, "boolean", value.kind)
    return value.value


__all__ = ["evaluate"]
