"""Post-turn memory trimming.

Three passes run once per turn, in order, each reading the file the previous
one left behind:

    A. parity      — keep 4 lines if the logical length is even, else L // 2
    B. prime split — split the line count into two primes, keep the larger side
    C. recovery    — if one line is left, append the backup's second-to-last line

The passes are not idempotent. A failing pass logs a warning and leaves the
file as it was; the remaining passes still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from memctl.errors import StageWarning
from memctl.memory.fragments import Fragments
from memctl.memory.store import MemoryFile

logger = logging.getLogger(__name__)

EVEN_KEEP_LINES = 4


@dataclass
class StageResult:
    """Outcome of one trimming pass."""

    stage: str
    lines_before: int
    lines_after: int
    applied: bool = False
    warning: StageWarning | None = None


def logical_length(fragments: Fragments) -> int:
    """User line + assistant line, plus one per non-empty fragment."""
    length = 2
    if fragments.unique:
        length += 1
    if fragments.common:
        length += 1
    return length


def is_prime(n: int) -> bool:
    if n < 2:
        return False
    i = 2
    while i * i <= n:
        if n % i == 0:
            return False
        i += 1
    return True


def find_prime_split(total: int) -> tuple[int, int] | None:
    """Smallest ``i`` in [2, total) with ``i`` and ``total - i`` both prime."""
    for i in range(2, total):
        j = total - i
        if is_prime(i) and is_prime(j):
            return i, j
    return None


def parity_trim(memory: MemoryFile, length: int) -> StageResult:
    before = memory.line_count()
    if length % 2 == 0:
        keep = EVEN_KEEP_LINES
        logger.info("Collatz step: even total → expanding memory (keeping last %d interactions)", keep)
    else:
        keep = max(1, length // 2)
        logger.info("Collatz step: odd total → contracting memory (keeping last %d lines)", keep)
    after = memory.keep_tail(keep)
    return StageResult("parity", before, after, applied=True)


def prime_split_trim(memory: MemoryFile) -> StageResult:
    total = memory.line_count()
    if total < 2:
        return StageResult("prime_split", total, total)

    split = find_prime_split(total)
    if split is None:
        # No prime pair: the file stays as it is
        logger.debug("Goldbach step: no prime pair sums to %d, memory unchanged", total)
        return StageResult("prime_split", total, total)

    i, j = split
    if j > i:
        logger.info("Goldbach step: keeping the last %d lines (larger prime)", j)
        after = memory.keep_tail(j)
    else:
        logger.info("Goldbach step: keeping the first %d lines (larger prime)", i)
        after = memory.keep_head(i)
    return StageResult("prime_split", total, after, applied=True)


def single_line_recovery(memory: MemoryFile) -> StageResult:
    lines = memory.line_count()
    if lines != 1:
        return StageResult("recovery", lines, lines)

    logger.info("Riemann step: memory reduced to 1 line, recovering context from backup")
    backup_lines = memory.backup.read_lines()
    if len(backup_lines) < 2:
        return StageResult("recovery", lines, lines)
    memory.append_lines([backup_lines[-2]])
    return StageResult("recovery", lines, lines + 1, applied=True)


def _guarded(stage: str, memory: MemoryFile, step: Callable[[], StageResult]) -> StageResult:
    try:
        return step()
    except OSError as e:
        warning = StageWarning(stage, str(e))
        logger.warning("Heuristic step failed, continuing: %s", warning)
        try:
            count = memory.line_count()
        except OSError:
            count = 0
        return StageResult(stage, count, count, warning=warning)


def trim_memory(memory: MemoryFile, length: int) -> list[StageResult]:
    """Apply the parity, prime-split and recovery passes in order."""
    return [
        _guarded("parity", memory, lambda: parity_trim(memory, length)),
        _guarded("prime_split", memory, lambda: prime_split_trim(memory)),
        _guarded("recovery", memory, lambda: single_line_recovery(memory)),
    ]
