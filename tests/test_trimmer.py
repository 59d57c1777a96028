"""Tests for the parity, prime-split and recovery trimming passes."""

from __future__ import annotations

import pytest
from pathlib import Path
from unittest.mock import patch

from memctl.memory.fragments import Fragments
from memctl.memory.store import MemoryFile
from memctl.memory.trimmer import (
    find_prime_split,
    is_prime,
    logical_length,
    parity_trim,
    prime_split_trim,
    single_line_recovery,
    trim_memory,
)


@pytest.fixture
def memory(tmp_path: Path) -> MemoryFile:
    mem = MemoryFile(tmp_path / "memory.txt", tmp_path / "memory.txt.backup")
    mem.ensure_exists()
    return mem


def fill(memory: MemoryFile, n: int, prefix: str = "line") -> list[str]:
    lines = [f"{prefix} {i}" for i in range(1, n + 1)]
    memory.write_lines(lines)
    return lines


class TestPrimes:
    @pytest.mark.parametrize("n", [2, 3, 5, 7, 11, 13, 97])
    def test_primes(self, n):
        assert is_prime(n)

    @pytest.mark.parametrize("n", [-3, 0, 1, 4, 9, 25, 91])
    def test_non_primes(self, n):
        assert not is_prime(n)

    def test_smallest_split(self):
        assert find_prime_split(10) == (3, 7)
        assert find_prime_split(4) == (2, 2)
        assert find_prime_split(5) == (2, 3)

    @pytest.mark.parametrize("total", [2, 3, 11, 17])
    def test_no_split(self, total):
        assert find_prime_split(total) is None


class TestLogicalLength:
    def test_no_fragments(self):
        assert logical_length(Fragments()) == 2

    def test_unique_only(self):
        assert logical_length(Fragments(unique=b"x")) == 3

    def test_both(self):
        assert logical_length(Fragments(unique=b"x", common=b"y")) == 4


class TestParityTrim:
    @pytest.mark.parametrize("n", [0, 2, 4, 6, 10])
    def test_even_length_keeps_last_four(self, memory: MemoryFile, n):
        lines = fill(memory, n)
        result = parity_trim(memory, 4)
        assert result.lines_after == min(n, 4)
        assert memory.read_lines() == lines[-4:]

    def test_odd_length_keeps_half(self, memory: MemoryFile):
        lines = fill(memory, 9)
        parity_trim(memory, 3)
        assert memory.read_lines() == lines[-1:]

    def test_odd_length_driven_by_length_not_size(self, memory: MemoryFile):
        fill(memory, 20)
        result = parity_trim(memory, 5)
        assert result.lines_before == 20
        assert result.lines_after == 2


class TestPrimeSplitTrim:
    def test_keeps_tail_when_larger_side_is_last(self, memory: MemoryFile):
        lines = fill(memory, 10)
        result = prime_split_trim(memory)
        assert result.applied
        assert memory.read_lines() == lines[-7:]

    def test_keeps_head_on_equal_split(self, memory: MemoryFile):
        lines = fill(memory, 4)
        prime_split_trim(memory)
        assert memory.read_lines() == lines[:2]

    @pytest.mark.parametrize("n", [0, 1])
    def test_noop_below_two_lines(self, memory: MemoryFile, n):
        fill(memory, n)
        result = prime_split_trim(memory)
        assert not result.applied
        assert memory.line_count() == n

    def test_no_prime_pair_leaves_file_unchanged(self, memory: MemoryFile):
        lines = fill(memory, 11)
        result = prime_split_trim(memory)
        assert not result.applied
        assert memory.read_lines() == lines


class TestSingleLineRecovery:
    def test_appends_backup_second_to_last(self, memory: MemoryFile):
        fill(memory, 1, prefix="kept")
        memory.backup.path.write_text("b1\nb2\nb3\n")
        result = single_line_recovery(memory)
        assert result.applied
        assert memory.read_lines() == ["kept 1", "b2"]

    def test_backup_too_short(self, memory: MemoryFile):
        fill(memory, 1)
        memory.backup.path.write_text("only\n")
        assert not single_line_recovery(memory).applied
        assert memory.line_count() == 1

    def test_missing_backup(self, memory: MemoryFile):
        fill(memory, 1)
        assert not single_line_recovery(memory).applied

    def test_noop_unless_single_line(self, memory: MemoryFile):
        fill(memory, 2)
        memory.backup.path.write_text("b1\nb2\n")
        assert not single_line_recovery(memory).applied
        assert memory.line_count() == 2


class TestTrimMemory:
    def test_five_lines_odd_length_scenario(self, memory: MemoryFile):
        lines = fill(memory, 5)
        memory.snapshot()
        results = trim_memory(memory, 3)
        assert [r.stage for r in results] == ["parity", "prime_split", "recovery"]
        assert results[0].lines_after == 1
        assert not results[1].applied
        assert results[2].applied
        assert memory.read_lines() == [lines[-1], lines[-2]]

    def test_empty_memory_scenario(self, memory: MemoryFile):
        memory.snapshot()
        results = trim_memory(memory, 2)
        assert [r.lines_after for r in results] == [0, 0, 0]
        assert memory.read_bytes() == b""

    def test_even_length_then_prime_split(self, memory: MemoryFile):
        lines = fill(memory, 8)
        memory.snapshot()
        trim_memory(memory, 4)
        # parity keeps 4, prime split 2+2 keeps the first 2
        assert memory.read_lines() == lines[4:6]

    def test_failed_step_is_suppressed(self, memory: MemoryFile, caplog):
        lines = fill(memory, 6)
        memory.snapshot()
        with patch.object(MemoryFile, "keep_tail", side_effect=OSError("disk full")):
            results = trim_memory(memory, 2)
        assert results[0].warning is not None
        assert results[0].warning.stage == "parity"
        assert "disk full" in caplog.text
        # prime split still ran: 6 = 3 + 3 keeps the first 3
        assert memory.read_lines() == lines[:3]


class TestCarriageReturnLines:
    def test_parity_trim_counts_newlines_only(self, memory: MemoryFile):
        memory.path.write_bytes(b"a\nloading 10%\rloading 100%\nb\nc\n")
        result = parity_trim(memory, 2)
        assert result.lines_before == 4
        assert result.lines_after == 4
        assert memory.read_bytes() == b"a\nloading 10%\rloading 100%\nb\nc\n"
