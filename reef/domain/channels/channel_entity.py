"""
Channel Domain Entity
=====================
A named input or output slot: what to run, how often, and which device (if
any) backs it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from reef.domain.exceptions import ConfigurationError
from reef.enums.channels import Direction, Locality
from reef.risp.nodes import Node
from reef.risp.parser import is_symbol_name
from reef.risp.values import Duration, Value


@dataclass(frozen=True)
class Channel:
    """
    Immutable channel declaration.

    Invariants (checked by :meth:`validate`):
    - every OUTPUT has a program, INPUTs have none
    - every PHYSICAL channel has a driver, VIRTUAL ones have none
    - a VIRTUAL INPUT has a held value
    - the period is positive
    - programs can read the name (not a literal, operator or ``now``)
    """

    name: str
    direction: Direction
    locality: Locality
    period: Duration
    program: Optional[Node] = None
    source: Optional[str] = None
    driver: Optional[Any] = None
    initial: Optional[Value] = None
    value: Optional[Value] = None

    @property
    def is_input(self) -> bool:
        return self.direction == Direction.INPUT

    @property
    def is_output(self) -> bool:
        return self.direction == Direction.OUTPUT

    @property
    def is_physical(self) -> bool:
        return self.locality == Locality.PHYSICAL

    @property
    def is_virtual(self) -> bool:
        return self.locality == Locality.VIRTUAL

    @property
    def period_seconds(self) -> int:
        return self.period.seconds

    def validate(self) -> None:
        """Raise ConfigurationError if the declaration is inconsistent."""
        problems = []
        if not is_symbol_name(self.name):
            problems.append("name is reserved or cannot be read by programs")
        if self.period.seconds <= 0:
            problems.append("period must be positive")
        if self.is_output and self.program is None:
            problems.append("output channel requires a program")
        if self.is_input and self.program is not None:
            problems.append("input channel cannot have a program")
        if self.is_physical and self.driver is None:
            problems.append("physical channel requires a driver")
        if self.is_virtual and self.driver is not None:
            problems.append("virtual channel cannot have a driver")
        if self.is_input and self.is_virtual and self.value is None:
            problems.append("virtual input requires a value")
        if self.is_physical and self.is_input and not callable(getattr(self.driver, "read", None)):
            problems.append("input driver must provide read()")
        if self.is_physical and self.is_output and not callable(getattr(self.driver, "write", None)):
            problems.append("output driver must provide write(value)")
        if problems:
            raise ConfigurationError(
                f"Channel '{self.name}': " + "; ".join(problems),
                detail={"channel": self.name, "problems": problems},
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "direction": self.direction.value,
            "locality": self.locality.value,
            "period": self.period.to_text(),
            "program": self.source,
            "driver": type(self.driver).__name__ if self.driver is not None else None,
            "initial": self.initial.to_text() if self.initial is not None else None,
        }
