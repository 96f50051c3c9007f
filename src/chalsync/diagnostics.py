"""Severity-tagged diagnostics and the fatal invariant error.

Expected failures (bad configuration, rejected remote calls) are collected
as diagnostics and returned to the caller. A remote state that contradicts
the documented challenge invariants is raised as InvariantViolation instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    """Diagnostic severity."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A single message produced while reconciling a challenge."""

    severity: Severity
    summary: str
    detail: str

    def __str__(self) -> str:
        return f"{self.severity.value}: {self.summary}: {self.detail}"


class Diagnostics(list[Diagnostic]):
    """Ordered collection of diagnostics."""

    def add_error(self, summary: str, detail: str) -> None:
        self.append(Diagnostic(Severity.ERROR, summary, detail))

    def add_warning(self, summary: str, detail: str) -> None:
        self.append(Diagnostic(Severity.WARNING, summary, detail))

    def has_error(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self if d.severity is Severity.ERROR]


class InvariantViolation(RuntimeError):
    """Raised when the remote platform reports a state that cannot exist.

    This signals a defect on the remote side (or in this controller), never a
    user configuration error, so it is not converted into a diagnostic.
    """
