"""Tests for the bounded history buffer."""

from __future__ import annotations

import pytest

from termcast.broadcast.history import DEFAULT_CAPACITY, HistoryBuffer


class TestHistoryBuffer:
    def test_default_capacity(self) -> None:
        assert HistoryBuffer().capacity == DEFAULT_CAPACITY == 1000

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            HistoryBuffer(0)

    def test_keeps_order_below_capacity(self) -> None:
        buf = HistoryBuffer(5)
        for line in ["a", "b", "c"]:
            buf.add_line(line)
        assert buf.snapshot() == ["a", "b", "c"]
        assert len(buf) == 3

    def test_evicts_oldest_first(self) -> None:
        buf = HistoryBuffer(3)
        for line in ["a", "b", "c", "d"]:
            buf.add_line(line)
        assert buf.snapshot() == ["b", "c", "d"]

    @pytest.mark.parametrize("count", [3, 4, 10, 57])
    def test_snapshot_is_last_lines(self, count: int) -> None:
        buf = HistoryBuffer(3)
        lines = [f"line {i}" for i in range(count)]
        for line in lines:
            buf.add_line(line)
        assert len(buf) == 3
        assert buf.snapshot() == lines[-3:]

    def test_clear_then_refill(self) -> None:
        buf = HistoryBuffer(2)
        buf.add_line("a")
        buf.add_line("b")
        buf.clear()
        assert buf.snapshot() == []
        assert buf.capacity == 2
        for line in ["c", "d", "e"]:
            buf.add_line(line)
        assert buf.snapshot() == ["d", "e"]

    def test_snapshot_is_a_copy(self) -> None:
        buf = HistoryBuffer(3)
        buf.add_line("a")
        snap = buf.snapshot()
        buf.add_line("b")
        assert snap == ["a"]
