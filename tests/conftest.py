"""Shared fixtures: a working directory with a fake binary and model."""

from __future__ import annotations

import pytest
from pathlib import Path

from memctl.config import MemctlConfig


@pytest.fixture
def config(tmp_path: Path) -> MemctlConfig:
    binary = tmp_path / "bin" / "llama-cli"
    binary.parent.mkdir()
    binary.write_text("#!/bin/sh\necho fake\n")
    binary.chmod(0o755)
    model = tmp_path / "models" / "model.gguf"
    model.parent.mkdir()
    model.write_bytes(b"GGUF")
    return MemctlConfig(
        binary_path=binary,
        model_path=model,
        prompt_path=tmp_path / "memory" / "prompt.txt",
        memory_path=tmp_path / "memory" / "memory.txt",
        log_path=tmp_path / "logs" / "memory_system.log",
    )
