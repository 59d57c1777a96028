"""memctl pipeline — one model turn plus memory maintenance.

Order of a turn:
1. Validate the environment
2. Select unique/common fragments from the memory file
3. Assemble base prompt + fragments into a temporary prompt
4. Invoke the model, capturing its combined output
5. Write the output to the log, the session capture and the memory tail
6. Append the User/Assistant lines and back up the memory file
7. Trim the memory file (parity, prime split, single-line recovery)

All temporaries live in one scoped directory, removed on every exit path.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from memctl.config import MemctlConfig
from memctl.errors import ModelInvocationError, StageWarning
from memctl.memory.fragments import Fragments, assemble_prompt, select_fragments
from memctl.memory.store import LineFile, MemoryFile
from memctl.memory.trimmer import StageResult, logical_length, trim_memory
from memctl.providers.base import ModelOutput
from memctl.providers.llama_cli import LlamaCLIProvider
from memctl.validator import validate

if TYPE_CHECKING:
    from memctl.providers.base import Provider

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """What a completed turn did to the memory file."""

    logical_length: int
    assistant_line: str
    memory_lines: int
    stages: list[StageResult] = field(default_factory=list)
    fragment_warning: StageWarning | None = None

    @property
    def warnings(self) -> list[StageWarning]:
        warnings = [self.fragment_warning] if self.fragment_warning else []
        return warnings + [s.warning for s in self.stages if s.warning is not None]


class MemoryController:
    """Runs a single turn against the configured prompt and memory files."""

    def __init__(self, config: MemctlConfig, provider: Provider | None = None) -> None:
        self.config = config
        self.provider = provider or LlamaCLIProvider(
            binary_path=config.binary_path,
            model_path=config.model_path,
            context_tokens=config.context_tokens,
            sampling=config.sampling,
            timeout=config.timeout,
        )
        self.prompt = LineFile(config.prompt_path)
        self.memory = MemoryFile(config.memory_path, config.backup_path)

    async def run_turn(self) -> TurnResult:
        with tempfile.TemporaryDirectory(prefix="memctl-") as tmp:
            try:
                return await self._run(Path(tmp))
            finally:
                self._remove_stray_tmp()

    async def _run(self, tmp: Path) -> TurnResult:
        validate(self.config)

        logger.info("Selecting semantic fragments from memory…")
        fragments, fragment_warning = self._select_fragments()
        fragments.write(tmp / "unique.txt", tmp / "common.txt")

        logger.info("Preparing temporary prompt…")
        prompt_file = assemble_prompt(self.prompt.path, fragments, tmp / "prompt.txt")

        logger.info("Launching %s…", self.provider.name)
        output = await self.provider.generate(prompt_file)
        self._record_output(output, tmp / "session.txt")
        if output.returncode != 0:
            raise ModelInvocationError(
                f"{self.provider.name} exited with status {output.returncode}",
                returncode=output.returncode,
            )

        logger.info("Model execution completed. Updating memory…")
        assistant_line = self.update_memory(output)

        length = logical_length(fragments)
        logger.info("Logical length for Collatz = %d", length)
        stages = trim_memory(self.memory, length)

        logger.info("Session finished successfully.")
        return TurnResult(
            logical_length=length,
            assistant_line=assistant_line,
            memory_lines=self.memory.line_count(),
            stages=stages,
            fragment_warning=fragment_warning,
        )

    def _select_fragments(self) -> tuple[Fragments, StageWarning | None]:
        """Pick fragments, falling back to none if the memory file cannot be split."""
        try:
            return select_fragments(self.memory.path, self.config.fragment_bytes), None
        except (OSError, ValueError) as e:
            warning = StageWarning("fragments", str(e))
            logger.warning("Fragment selection failed, continuing without fragments: %s", warning)
            return Fragments(), warning

    def _record_output(self, output: ModelOutput, session_path: Path) -> None:
        """Send the captured output to the log, the session file and the memory tail."""
        text = output.text
        if text and not text.endswith("\n"):
            text += "\n"
        with self.config.log_path.open("a", encoding="utf-8") as f:
            f.write(text)
        session_path.write_text(output.text, encoding="utf-8")
        self.memory.append_lines(output.tail(self.config.memory_tail_lines))

    def update_memory(self, output: ModelOutput) -> str:
        """Append the latest User/Assistant lines and snapshot the memory file."""
        assistant_line = output.last_line
        self.memory.append_turn(self.prompt.last_line(), assistant_line)
        self.memory.snapshot()
        return assistant_line

    def _remove_stray_tmp(self) -> None:
        tmp = self.memory.path.with_name(self.memory.path.name + ".tmp")
        tmp.unlink(missing_ok=True)
