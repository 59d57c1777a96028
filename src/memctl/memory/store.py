"""Line-oriented access to the prompt, memory and backup files.

A file's lines are its text split on ``\n`` only, so a ``\r`` progress
update stays inside its line. Rewritten files always end with a newline,
so the line count matches ``wc -l`` afterwards.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def split_lines(text: str) -> list[str]:
    """Split on newlines only, the way `wc -l` and `tail -n` count lines."""
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return lines


class LineFile:
    """A plain text file treated as an ordered list of lines."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def ensure_exists(self) -> bool:
        """Create the file (and its parent directory) if missing.

        Returns True when the file had to be created.
        """
        if self.path.is_file():
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch()
        return True

    def read_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return b""

    def read_lines(self) -> list[str]:
        return split_lines(self.read_bytes().decode("utf-8", errors="replace"))

    def line_count(self) -> int:
        return len(self.read_lines())

    def last_line(self) -> str:
        lines = self.read_lines()
        return lines[-1] if lines else ""

    def write_lines(self, lines: list[str]) -> None:
        """Replace the file content, going through a sibling .tmp file."""
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        os.replace(tmp, self.path)

    def append_lines(self, lines: list[str]) -> None:
        if not lines:
            return
        existing = self.read_bytes()
        with self.path.open("a", encoding="utf-8") as f:
            # Keep the previous last line intact if it lacked a newline
            if existing and not existing.endswith(b"\n"):
                f.write("\n")
            f.writelines(f"{line}\n" for line in lines)

    def keep_tail(self, n: int) -> int:
        """Keep only the last ``n`` lines. Returns the resulting line count."""
        lines = self.read_lines()
        kept = lines[-n:] if n > 0 else []
        self.write_lines(kept)
        return len(kept)

    def keep_head(self, n: int) -> int:
        """Keep only the first ``n`` lines. Returns the resulting line count."""
        kept = self.read_lines()[: max(n, 0)]
        self.write_lines(kept)
        return len(kept)

    def copy_to(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self.path, dest)


class MemoryFile(LineFile):
    """The conversation memory file plus its pre-trim backup."""

    def __init__(self, path: Path, backup_path: Path) -> None:
        super().__init__(path)
        self.backup = LineFile(backup_path)

    def append_turn(self, user_line: str, assistant_line: str) -> None:
        """Record the latest exchange as labeled lines."""
        self.append_lines([f"User: {user_line}", f"Assistant: {assistant_line}"])

    def snapshot(self) -> bool:
        """Copy memory to the backup path. Best effort; returns success."""
        try:
            self.copy_to(self.backup.path)
        except OSError as e:
            logger.warning("Could not back up %s to %s: %s", self.path, self.backup.path, e)
            return False
        return True
