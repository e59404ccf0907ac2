"""Risp: the expression language used to program output channels."""

from reef.risp.errors import (
    ArityError,
    DivisionByZeroError,
    ErrorCodes,
    NoMatchingClauseError,
    RispError,
    RispSyntaxError,
    TypeMismatchError,
    UndefinedSymbolError,
)
from reef.risp.evaluator import evaluate
from reef.risp.nodes import Call, Clause, Literal, Node, SymbolRef, referenced_symbols, unparse
from reef.risp.parser import parse
from reef.risp.values import Boolean, Duration, Instant, Number, Value, coerce_value

__all__ = [
    "ArityError",
    "Boolean",
    "Call",
    "Clause",
    "DivisionByZeroError",
    "Duration",
    "ErrorCodes",
    "Instant",
    "Literal",
    "Node",
    "NoMatchingClauseError",
    "Number",
    "RispError",
    "RispSyntaxError",
    "SymbolRef",
    "TypeMismatchError",
    "UndefinedSymbolError",
    "Value",
    "coerce_value",
    "evaluate",
    "parse",
    "referenced_symbols",
    "unparse",
]
