"""Configuration loading from environment variables and memctl.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "memctl.toml"
_DEFAULT_BINARY = Path.home() / "modelo" / "llama.cpp" / "build" / "bin" / "llama-cli"
_DEFAULT_MODEL = (
    Path.home() / "modelo" / "modelos_grandes" / "M6" / "mistral-7b-instruct-v0.1.Q6_K.gguf"
)


@dataclass
class SamplingConfig:
    """Fixed sampling parameters passed to the inference binary."""

    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.9
    repeat_penalty: float = 1.1
    n_predict: int = 200
    color: bool = True


@dataclass
class MemctlConfig:
    """Top-level configuration, passed explicitly into every component."""

    binary_path: Path = _DEFAULT_BINARY
    model_path: Path = _DEFAULT_MODEL
    prompt_path: Path = Path("memory/prompt.txt")
    memory_path: Path = Path("memory/memory.txt")
    log_path: Path = Path("logs/memory_system.log")
    backup_path: Path | None = None
    context_tokens: int = 4096
    fragment_bytes: int = 800
    memory_tail_lines: int = 50
    required_commands: list[str] = field(default_factory=list)
    timeout: int | None = None
    log_level: str = "INFO"
    sampling: SamplingConfig = field(default_factory=SamplingConfig)

    def __post_init__(self) -> None:
        if self.backup_path is None:
            self.backup_path = self.memory_path.with_name(self.memory_path.name + ".backup")


def _path(value: str | os.PathLike) -> Path:
    return Path(value).expanduser()


def _find_config_file() -> dict:
    env_path = os.getenv("MEMCTL_CONFIG")
    candidates = [Path(env_path)] if env_path else []
    candidates += [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".memctl" / _CONFIG_FILENAME]
    for candidate in candidates:
        if candidate.exists():
            return tomllib.loads(candidate.read_text())
    return {}


def load_config(config_path: Path | None = None) -> MemctlConfig:
    """Load configuration from environment variables and optional memctl.toml.

    Priority: environment variables > memctl.toml > defaults.
    """
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        file_data = _find_config_file()

    paths = file_data.get("paths", {})
    memory_data = file_data.get("memory", {})
    model_data = file_data.get("model", {})
    sampling_data = file_data.get("sampling", {})

    defaults = MemctlConfig()
    backup = os.getenv("MEMCTL_BACKUP", paths.get("backup"))
    timeout = os.getenv("MEMCTL_TIMEOUT", model_data.get("timeout"))

    config = MemctlConfig(
        binary_path=_path(os.getenv("MEMCTL_BINARY", paths.get("binary", defaults.binary_path))),
        model_path=_path(os.getenv("MEMCTL_MODEL", paths.get("model", defaults.model_path))),
        prompt_path=_path(os.getenv("MEMCTL_PROMPT", paths.get("prompt", defaults.prompt_path))),
        memory_path=_path(os.getenv("MEMCTL_MEMORY", paths.get("memory", defaults.memory_path))),
        log_path=_path(os.getenv("MEMCTL_LOG", paths.get("log", defaults.log_path))),
        backup_path=_path(backup) if backup else None,
        context_tokens=int(
            os.getenv("MEMCTL_CONTEXT_TOKENS", model_data.get("context_tokens", 4096))
        ),
        fragment_bytes=int(
            os.getenv("MEMCTL_FRAGMENT_BYTES", memory_data.get("fragment_bytes", 800))
        ),
        memory_tail_lines=int(memory_data.get("tail_lines", 50)),
        required_commands=list(file_data.get("required_commands", [])),
        timeout=int(timeout) if timeout else None,
        log_level=os.getenv("MEMCTL_LOG_LEVEL", file_data.get("log_level", "INFO")),
        sampling=SamplingConfig(
            temperature=float(sampling_data.get("temperature", 0.7)),
            top_k=int(sampling_data.get("top_k", 40)),
            top_p=float(sampling_data.get("top_p", 0.9)),
            repeat_penalty=float(sampling_data.get("repeat_penalty", 1.1)),
            n_predict=int(sampling_data.get("n_predict", 200)),
            color=bool(sampling_data.get("color", True)),
        ),
    )
    return config
