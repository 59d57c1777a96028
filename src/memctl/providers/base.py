"""Provider protocol and shared types."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from memctl.memory.store import split_lines


@dataclass
class ModelOutput:
    """Combined stdout/stderr of one model invocation."""

    text: str
    returncode: int = 0

    @property
    def lines(self) -> list[str]:
        return split_lines(self.text)

    @property
    def last_line(self) -> str:
        lines = self.lines
        return lines[-1] if lines else ""

    def tail(self, n: int) -> list[str]:
        return self.lines[-n:] if n > 0 else []


@runtime_checkable
class Provider(Protocol):
    """Protocol that all inference backends must implement."""

    @property
    def name(self) -> str: ...

    async def generate(self, prompt_file: Path) -> ModelOutput:
        """Run the model against an assembled prompt file."""
        ...
