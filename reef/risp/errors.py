# Risp Error Types
# Parse-time and evaluation-time failures of the control language

from __future__ import annotations

from enum import Enum
from typing import Any

from reef.domain.exceptions import ReefError


class ErrorCodes(str, Enum):
    """Error code constants carried by every RispError."""

    SYNTAX_ERROR = "SyntaxError"
    UNDEFINED = "Undefined"
    NO_MATCHING_CLAUSE = "NoMatchingClause"
    TYPE_MISMATCH = "TypeMismatch"
    ARITY_ERROR = "Arity"
    DIVISION_BY_ZERO = "DivisionByZero"


class RispError(ReefError):
    """Base exception class for all Risp errors."""

    code: ErrorCodes = ErrorCodes.SYNTAX_ERROR

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message, detail=detail)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready mapping for failure events."""
        return {"code": self.code.value, "message": self.message, **self.detail}


class RispSyntaxError(RispError):
    """Malformed Risp text. Detected at configuration time, fatal for the channel."""

    code = ErrorCodes.SYNTAX_ERROR

    def __init__(self, position: int, message: str) -> None:
        super().__init__(f"{message} at position {position}", detail={"position": position})
        self.position = position
        self.reason = message


class UndefinedSymbolError(RispError):
    """A symbol has no committed value yet."""

    code = ErrorCodes.UNDEFINED

    def __init__(self, symbol: str, message: str | None = None) -> None:
        super().__init__(message or f"Undefined symbol: {symbol}", detail={"symbol": symbol})
        self.symbol = symbol


class NoMatchingClauseError(UndefinedSymbolError):
    """A cond form had no true test and no `t` fallback."""

    code = ErrorCodes.NO_MATCHING_CLAUSE

    def __init__(self) -> None:
        super().__init__("cond", "cond: no clause matched and no t fallback")


class TypeMismatchError(RispError):
    code = ErrorCodes.TYPE_MISMATCH

    def __init__(self, op: str, expected: str, got: str) -> None:
        super().__init__(
            f"Type mismatch in {op}: expected {expected}, got {got}",
            detail={"op": op, "expected": expected, "got": got},
        )
        self.op = op
        self.expected = expected
        self.got = got


class ArityError(RispError):
    code = ErrorCodes.ARITY_ERROR

    def __init__(self, op: str, expected: str, got: int) -> None:
        super().__init__(
            f"Arity error: {op} expects {expected} arguments, got {got}",
            detail={"op": op, "expected": expected, "got": got},
        )
        self.op = op
        self.expected = expected
        self.got = got


class DivisionByZeroError(RispError):
    code = ErrorCodes.DIVISION_BY_ZERO

    def __init__(self, op: str = "/") -> None:
        super().__init__(f"Division by zero in {op}", detail={"op": op})
        self.op = op


__all__ = [
    "ArityError",
    "DivisionByZeroError",
    "ErrorCodes",
    "NoMatchingClauseError",
    "RispError",
    "RispSyntaxError",
    "TypeMismatchError",
    "UndefinedSymbolError",
]
