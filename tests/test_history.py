"""
Tests for the bounded result history.
"""

import pytest

from models.result import DetectionResult
from storage.history import ResultHistory


def result(name):
    return DetectionResult(predictions=(), source_ref=name.encode(), display_name=name)


class TestResultHistory:
    def test_most_recent_first(self):
        history = ResultHistory()
        for name in ("a", "b", "c"):
            history.record(result(name))
        assert [r.display_name for r in history] == ["c", "b", "a"]
        assert history.latest.display_name == "c"
        assert history.get(2).display_name == "a"

    def test_evicts_oldest_past_capacity(self):
        history = ResultHistory(capacity=5)
        evicted = [history.record(result(str(i))) for i in range(6)]
        assert evicted[:5] == [None] * 5
        assert evicted[5].display_name == "0"
        assert len(history) == 5
        assert [r.display_name for r in history.entries()] == ["5", "4", "3", "2", "1"]

    def test_get_out_of_range(self):
        history = ResultHistory()
        history.record(result("a"))
        with pytest.raises(IndexError):
            history.get(1)
        with pytest.raises(IndexError):
            history.get(-1)

    def test_clear(self):
        history = ResultHistory()
        history.record(result("a"))
        history.clear()
        assert len(history) == 0
        assert history.latest is None

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            ResultHistory(capacity=0)
        assert ResultHistory(capacity=3).capacity == 3
