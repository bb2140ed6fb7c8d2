"""Tests for StatsAggregator."""

import threading

import pytest

from logfanout.core.levels import LogLevel
from logfanout.core.stats import StatsAggregator


class TestStatsAggregator:
    """Tests for per-level counting and draining."""

    @pytest.mark.core
    def test_record_counts_by_level_name(self) -> None:
        stats = StatsAggregator()
        stats.record(LogLevel.INFO)
        stats.record(LogLevel.INFO)
        stats.record(LogLevel.ERROR)
        assert stats.snapshot() == {"INFO": 2, "ERROR": 1}

    @pytest.mark.core
    def test_drain_returns_report_and_resets(self) -> None:
        stats = StatsAggregator()
        for level in (LogLevel.INFO, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR):
            stats.record(level)

        report = stats.drain()

        assert report is not None
        assert report.counts == {"INFO": 2, "WARN": 1, "ERROR": 1}
        assert report.total == 4
        assert report.error_rate == 0.25
        assert stats.snapshot() == {}

    @pytest.mark.core
    def test_drain_on_empty_returns_none(self) -> None:
        assert StatsAggregator().drain() is None

    @pytest.mark.core
    def test_report_properties_shape(self) -> None:
        stats = StatsAggregator()
        stats.record(LogLevel.DEBUG)
        report = stats.drain()
        assert report is not None
        assert report.to_properties() == {
            "log_counts": {"DEBUG": 1},
            "total_logs": 1,
            "error_rate": 0.0,
        }

    @pytest.mark.core
    def test_concurrent_records_are_not_lost(self) -> None:
        """Counts drained while writers run are never double counted or lost."""
        stats = StatsAggregator()
        drained: list[int] = []

        def writer() -> None:
            for _ in range(1000):
                stats.record(LogLevel.INFO)

        def drainer() -> None:
            for _ in range(50):
                report = stats.drain()
                if report is not None:
                    drained.append(report.total)

        threads = [threading.Thread(target=writer) for _ in range(4)]
        threads.append(threading.Thread(target=drainer))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        final = stats.drain()
        total = sum(drained) + (final.total if final else 0)
        assert total == 4000
