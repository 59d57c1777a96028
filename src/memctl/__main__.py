"""Entry point: python -m memctl

Runs one turn and exits. No arguments are parsed; behavior comes entirely
from memctl.toml, MEMCTL_* environment variables, and the built-in defaults.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from memctl.config import load_config
from memctl.errors import MemctlError

logger = logging.getLogger("memctl")


class _PrefixFormatter(logging.Formatter):
    """`[INFO][timestamp] msg`, `[WARN][timestamp] msg`, `[ERROR] msg`."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if record.levelno >= logging.ERROR:
            return f"[ERROR] {message}"
        level = "WARN" if record.levelno == logging.WARNING else record.levelname
        return f"[{level}][{self.formatTime(record, '%Y-%m-%d %H:%M:%S')}] {message}"


def _setup_logging(level: str, log_path: Path) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = _PrefixFormatter()

    stdout = logging.StreamHandler(sys.stdout)
    stdout.addFilter(lambda record: record.levelno < logging.ERROR)
    stderr = logging.StreamHandler(sys.stderr)
    stderr.setLevel(logging.ERROR)
    logfile = logging.FileHandler(log_path, encoding="utf-8")
    for handler in (stdout, stderr, logfile):
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[stdout, stderr, logfile],
        force=True,
    )


def main() -> None:
    try:
        config = load_config()
    except (OSError, ValueError) as e:
        print(f"[ERROR] Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    try:
        _setup_logging(config.log_level, config.log_path)
    except OSError as e:
        print(f"[ERROR] Cannot open log file {config.log_path}: {e}", file=sys.stderr)
        sys.exit(1)

    from memctl.core import MemoryController

    controller = MemoryController(config)
    try:
        asyncio.run(controller.run_turn())
    except MemctlError as e:
        logger.error("%s", e)
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        logger.error("Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
