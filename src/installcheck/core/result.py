"""Result and error types for installation checks."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class Outcome(str, Enum):
    """How a single check ended."""

    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    NOT_RUNNABLE = "not_runnable"
    TIMED_OUT = "timed_out"
    MARKER_MISSING = "marker_missing"


class VerificationResult(BaseModel):
    """Result of running one executable's version query."""

    executable: str
    marker: str
    outcome: Outcome
    message: str
    command: list[str] = Field(default_factory=list)
    resolved_path: Path | None = None
    returncode: int | None = None
    output: str = ""
    duration: float = 0.0
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def verified(self) -> bool:
        return self.outcome is Outcome.VERIFIED

    @property
    def exit_code(self) -> int:
        return 0 if self.verified else 1


class VerificationError(Exception):
    """Base class for failed checks; carries the failed result."""

    outcome: Outcome

    def __init__(self, message: str, result: VerificationResult | None = None):
        super().__init__(message)
        self.result = result


class ExecutableNotFound(VerificationError):
    """The path does not exist or the command is not on PATH."""

    outcome = Outcome.NOT_FOUND


class ExecutableNotRunnable(VerificationError):
    """The executable exists but the system refused to run it."""

    outcome = Outcome.NOT_RUNNABLE


class InvocationTimeout(VerificationError):
    """The version query did not finish within the timeout."""

    outcome = Outcome.TIMED_OUT


class MarkerNotPresent(VerificationError):
    """The executable ran but its output lacks the marker."""

    outcome = Outcome.MARKER_MISSING
