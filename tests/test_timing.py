"""Tests für utils/timing.py - Dauer-Parser und Progress-Anzeige."""

import logging

import pytest

from utils.timing import (
    format_duration,
    format_progress,
    format_seconds,
    log_preview,
    parse_duration,
    timed_operation,
)


class TestParseDuration:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("30s", 30.0),
            ("1m", 60.0),
            ("2m30s", 150.0),
            ("90", 90.0),
            ("1.5m", 90.0),
            (" 45s ", 45.0),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "1h", "-5s", "m", "1m30"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)

    @pytest.mark.parametrize("value", ["0", "0s", "0m0s"])
    def test_non_positive(self, value):
        with pytest.raises(ValueError, match="positiv"):
            parse_duration(value)


class TestFormatSeconds:
    @pytest.mark.parametrize(
        "seconds,expected",
        [(45, "45s"), (60, "1m"), (150, "2m30s"), (59.6, "1m"), (0, "0s")],
    )
    def test_format(self, seconds, expected):
        assert format_seconds(seconds) == expected

    @pytest.mark.parametrize("value", ["30s", "1m", "2m30s"])
    def test_inverse_of_parse(self, value):
        assert format_seconds(parse_duration(value)) == value


class TestFormatProgress:
    def test_empty_bar(self):
        assert format_progress(0, 60, width=10) == "[░░░░░░░░░░]   0s / 60s"

    def test_partial_bar(self):
        assert format_progress(12, 60) == "[████░░░░░░░░░░░░░░░░]  12s / 60s"

    def test_full_bar_is_clamped(self):
        """Überschreitung der Maximaldauer füllt den Balken nicht über 100%."""
        assert format_progress(75, 60, width=4) == "[████]  75s / 60s"

    def test_zero_total(self):
        assert format_progress(5, 0, width=4) == "[░░░░]   5s / 0s"


class TestFormatDuration:
    def test_milliseconds(self):
        assert format_duration(250) == "250ms"

    def test_seconds(self):
        assert format_duration(1500) == "1.50s"


class TestLogPreview:
    def test_short_text_unchanged(self):
        assert log_preview("Hallo") == "Hallo"

    def test_long_text_truncated(self):
        assert log_preview("x" * 150, max_length=10) == "x" * 10 + "..."


class TestTimedOperation:
    def test_logs_duration(self, caplog):
        logger = logging.getLogger("diktat.test")
        with caplog.at_level(logging.INFO, logger="diktat.test"):
            with timed_operation("Transkription", logger=logger, include_session=False):
                pass
        assert "Transkription:" in caplog.text

    def test_logs_even_on_exception(self, caplog):
        logger = logging.getLogger("diktat.test")
        with caplog.at_level(logging.INFO, logger="diktat.test"):
            with pytest.raises(RuntimeError):
                with timed_operation("API-Call", logger=logger):
                    raise RuntimeError("boom")
        assert "API-Call:" in caplog.text
