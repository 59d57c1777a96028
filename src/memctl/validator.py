"""Environment validation run before anything touches the model."""

from __future__ import annotations

import logging
import os
import shutil

from memctl.config import MemctlConfig
from memctl.errors import EnvironmentCheckError
from memctl.memory.store import LineFile

logger = logging.getLogger(__name__)


def validate(config: MemctlConfig) -> None:
    """Check files, permissions, the binary, the model and required commands.

    Missing prompt/memory files are created empty; every other failure raises
    EnvironmentCheckError.
    """
    logger.info("Validating environment and dependencies…")

    for path in (config.prompt_path, config.memory_path):
        try:
            if LineFile(path).ensure_exists():
                logger.info("Creating missing file: %s", path)
        except OSError as e:
            raise EnvironmentCheckError(f"Cannot create {path}: {e}") from e
        if not os.access(path, os.R_OK | os.W_OK):
            raise EnvironmentCheckError(f"Insufficient read/write permissions on {path}")

    try:
        config.log_path.parent.mkdir(parents=True, exist_ok=True)
        config.log_path.touch()
    except OSError as e:
        raise EnvironmentCheckError(f"Cannot write log file {config.log_path}: {e}") from e

    binary = config.binary_path
    if not binary.is_file() or not os.access(binary, os.X_OK):
        raise EnvironmentCheckError(f"llama-cli binary not found or not executable at {binary}")

    if not config.model_path.is_file() or not os.access(config.model_path, os.R_OK):
        raise EnvironmentCheckError(f"Model file is not readable: {config.model_path}")

    for cmd in config.required_commands:
        if shutil.which(cmd) is None:
            raise EnvironmentCheckError(f"Required command not found: {cmd}")

    logger.info("Environment validation completed successfully.")
