"""
Failure taxonomy for circuit assembly and solving.

Structural and singularity problems are reported as :class:`Failure` values
wrapped in an :class:`Outcome`; the caller decides whether to fix the circuit
or abort. The exception classes are raised only by :meth:`Outcome.unwrap` and
by the netlist reader.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class CircuitError(Exception):
    """Base class for every error raised by mnacore."""


class StructuralError(CircuitError):
    """The circuit topology cannot be assembled (no ground, shorted terminals, ...)."""


class SingularSystemError(CircuitError):
    """The MNA matrix is singular or numerically close to it."""


class NetlistError(CircuitError, ValueError):
    """Malformed netlist text."""


class FailureReason(Enum):
    EMPTY_CIRCUIT = "empty circuit"
    NO_GROUND = "no ground"
    UNGROUNDED_ISLAND = "ungrounded island"
    UNBOUND_TERMINAL = "unbound terminal"
    DEGENERATE_COMPONENT = "degenerate component"
    INVALID_VALUE = "invalid value"
    SINGULAR_MATRIX = "singular matrix"
    NOT_ASSEMBLED = "not assembled"

    @property
    def is_structural(self) -> bool:
        return self not in (FailureReason.SINGULAR_MATRIX, FailureReason.NOT_ASSEMBLED)


@dataclass(frozen=True)
class Failure:
    """
    Why a circuit could not be assembled or solved.

    Attributes:
        reason: Discriminant of the failure.
        message: Human readable explanation.
        subject: Name of the offending component or node, when there is one.
    """
    reason: FailureReason
    message: str
    subject: Optional[str] = None

    @property
    def category(self) -> str:
        return "structural" if self.reason.is_structural else "singular"

    def to_exception(self) -> CircuitError:
        if self.reason.is_structural:
            return StructuralError(self.message)
        return SingularSystemError(self.message)

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or a :class:`Failure`, never both."""
    value: Optional[T] = None
    failure: Optional[Failure] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, reason: FailureReason, message: str, subject: Optional[str] = None) -> "Outcome[T]":
        return cls(failure=Failure(reason, message, subject))

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> T:
        if self.failure is not None:
            raise self.failure.to_exception()
        return self.value  # type: ignore[return-value]
