"""llama.cpp provider — wraps the `llama-cli` binary as an opaque subprocess."""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from memctl.config import SamplingConfig
from memctl.errors import ModelInvocationError
from memctl.providers.base import ModelOutput

logger = logging.getLogger(__name__)


@dataclass
class LlamaCLIProvider:
    """Subprocess wrapper around `llama-cli --prompt-file`.

    stdout and stderr are merged into a single buffered capture.
    """

    binary_path: Path
    model_path: Path
    context_tokens: int = 4096
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    timeout: int | None = None

    @property
    def name(self) -> str:
        return "llama_cli"

    def build_command(self, prompt_file: Path) -> list[str]:
        s = self.sampling
        cmd = [
            str(self.binary_path),
            "--model", str(self.model_path),
            "--prompt-file", str(prompt_file),
        ]
        if s.color:
            cmd.append("--color")
        cmd.extend([
            "--temp", str(s.temperature),
            "--top-k", str(s.top_k),
            "--top-p", str(s.top_p),
            "--repeat-penalty", str(s.repeat_penalty),
            "--n-predict", str(s.n_predict),
            "--ctx-size", str(self.context_tokens),
        ])
        return cmd

    async def generate(self, prompt_file: Path) -> ModelOutput:
        cmd = self.build_command(prompt_file)
        logger.debug("Running: %s", " ".join(cmd[:3]) + " ...")

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ModelInvocationError(
                f"llama-cli did not finish within {self.timeout}s"
            ) from e
        except OSError as e:
            raise ModelInvocationError(f"Could not start {self.binary_path}: {e}") from e

        text = (result.stdout or b"").decode("utf-8", errors="replace")
        return ModelOutput(text=text, returncode=result.returncode)
