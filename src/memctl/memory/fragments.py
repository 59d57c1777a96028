"""Fragment selection and prompt assembly.

The selector is positional: "unique" is the first fixed-size byte chunk of
the memory file and "common" is the last one. Nothing is compared; the names
are kept because the prompt layout depends on them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from memctl.memory.store import LineFile

logger = logging.getLogger(__name__)


@dataclass
class Fragments:
    """Byte chunks chosen from the memory file for the next prompt."""

    unique: bytes = b""
    common: bytes = b""

    def write(self, unique_path: Path, common_path: Path) -> None:
        unique_path.write_bytes(self.unique)
        common_path.write_bytes(self.common)


def split_chunks(data: bytes, size: int) -> list[bytes]:
    """Split ``data`` into consecutive ``size``-byte chunks (last may be short)."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [data[i : i + size] for i in range(0, len(data), size)]


def select_fragments(path: Path, chunk_size: int) -> Fragments:
    """Return the first chunk as ``unique`` and the last as ``common``.

    A single chunk only fills ``unique``; an empty or missing file yields
    two empty fragments.
    """
    chunks = split_chunks(LineFile(path).read_bytes(), chunk_size)
    if not chunks:
        return Fragments()
    common = chunks[-1] if len(chunks) > 1 else b""
    logger.debug("Split %s into %d chunk(s) of %d bytes", path, len(chunks), chunk_size)
    return Fragments(unique=chunks[0], common=common)


def assemble_prompt(base_prompt: Path, fragments: Fragments, dest: Path) -> Path:
    """Write base prompt + common + unique to ``dest``, unchanged."""
    dest.write_bytes(LineFile(base_prompt).read_bytes() + fragments.common + fragments.unique)
    return dest
