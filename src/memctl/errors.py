"""Error taxonomy for a memctl run.

Fatal conditions are exceptions carrying the process exit code. Failures
inside a trimming stage are not raised: they come back as ``StageWarning``
values and the run continues.
"""

from __future__ import annotations

from dataclasses import dataclass


class MemctlError(Exception):
    """Base exception for fatal memctl errors."""

    exit_code: int = 1


class EnvironmentCheckError(MemctlError):
    """A required file, binary, or command is missing or inaccessible."""


class ModelInvocationError(MemctlError):
    """The inference binary could not run to a successful exit."""

    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


@dataclass
class StageWarning:
    """A suppressed failure inside one heuristic step."""

    stage: str
    message: str

    def __str__(self) -> str:
        return f"{self.stage}: {self.message}"
