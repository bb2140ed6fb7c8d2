"""Tests for the LogLevel scale."""

import logging

import pytest

from logfanout.core.levels import ESCALATION_LEVEL, LogLevel


class TestLogLevel:
    """Tests for LogLevel ordering and parsing."""

    @pytest.mark.core
    def test_ranks_are_ordered(self) -> None:
        """Ranks run TRACE=0 through FATAL=5."""
        assert [level.rank for level in LogLevel] == [0, 1, 2, 3, 4, 5]
        assert LogLevel.TRACE < LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARN < LogLevel.ERROR < LogLevel.FATAL

    @pytest.mark.core
    def test_escalation_level_is_error(self) -> None:
        assert ESCALATION_LEVEL is LogLevel.ERROR

    @pytest.mark.core
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("info", LogLevel.INFO),
            ("WARN", LogLevel.WARN),
            ("warning", LogLevel.WARN),
            ("critical", LogLevel.FATAL),
            (4, LogLevel.ERROR),
            (LogLevel.TRACE, LogLevel.TRACE),
        ],
    )
    def test_parse_accepts_names_ranks_and_levels(
        self, value: str | int | LogLevel, expected: LogLevel
    ) -> None:
        assert LogLevel.parse(value) is expected

    @pytest.mark.core
    @pytest.mark.parametrize("value", ["verbose", 9, True])
    def test_parse_rejects_unknown_levels(self, value: object) -> None:
        with pytest.raises(ValueError):
            LogLevel.parse(value)  # type: ignore[arg-type]

    @pytest.mark.core
    @pytest.mark.parametrize(
        ("levelno", "expected"),
        [
            (logging.NOTSET, LogLevel.TRACE),
            (5, LogLevel.TRACE),
            (logging.DEBUG, LogLevel.DEBUG),
            (logging.INFO, LogLevel.INFO),
            (logging.WARNING, LogLevel.WARN),
            (logging.ERROR, LogLevel.ERROR),
            (logging.CRITICAL, LogLevel.FATAL),
        ],
    )
    def test_from_stdlib_maps_logging_levels(self, levelno: int, expected: LogLevel) -> None:
        assert LogLevel.from_stdlib(levelno) is expected
