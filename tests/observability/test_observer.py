"""
Test suite for pipeline observers and logging helpers.

System role: Verification of structured event reporting
"""

import logging

import pytest

from recall.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from recall.observability.log_utils import format_context, log_with_context, safe_log_value
from recall.observability.observer import (
    ITEM_FAILED,
    ITEM_SKIPPED,
    CompositeObserver,
    CountingObserver,
    LoggingObserver,
    NullObserver,
    PipelineEvent,
    RecordingObserver,
)


def _event(name: str = ITEM_SKIPPED, **fields) -> PipelineEvent:
    return PipelineEvent(stage="indexing", name=name, message=f"{name} happened", fields=fields)


class TestCountingObserver:
    """Test suite for CountingObserver."""

    def test_counts_by_name(self) -> None:
        counter = CountingObserver()

        for name in (ITEM_SKIPPED, ITEM_SKIPPED, ITEM_FAILED):
            counter.emit(_event(name))

        assert counter.count(ITEM_SKIPPED) == 2
        assert counter.count(ITEM_FAILED) == 1
        assert counter.count("never_emitted") == 0

    def test_reset_forgets_counts(self) -> None:
        counter = CountingObserver()
        counter.emit(_event())

        counter.reset()

        assert counter.count(ITEM_SKIPPED) == 0


class TestCompositeObserver:
    """Test suite for CompositeObserver fan-out."""

    def test_every_observer_receives_each_event(self) -> None:
        recorder = RecordingObserver()
        counter = CountingObserver()
        composite = CompositeObserver(recorder, counter, NullObserver())

        composite.emit(_event("a"))
        composite.emit(_event("b"))

        assert recorder.names() == ["a", "b"]
        assert counter.count("a") == 1


class TestLoggingObserver:
    """Test suite for LoggingObserver."""

    def test_logs_at_event_level_with_fields(self, caplog) -> None:
        observer = LoggingObserver(logging.getLogger("recall.test"))
        event = PipelineEvent(
            stage="search",
            name="keyword_fallback",
            message="No keyword matches",
            level=logging.WARNING,
            fields={"candidates": 0},
        )

        with caplog.at_level(logging.DEBUG, logger="recall.test"):
            observer.emit(event)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == (
            "[search] No keyword matches | event=keyword_fallback candidates=0"
        )
        assert record.context == {"event": "keyword_fallback", "candidates": "0"}

    def test_includes_correlation_id_when_set(self, caplog) -> None:
        observer = LoggingObserver(logging.getLogger("recall.test"))
        set_correlation_id("req-42")
        try:
            with caplog.at_level(logging.INFO, logger="recall.test"):
                observer.emit(_event("stored"))
        finally:
            clear_correlation_id()

        assert "correlation_id=req-42" in caplog.records[-1].getMessage()


class TestLogUtils:
    """Test suite for log-safe value rendering."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "None"),
            (0.123456, "0.123"),
            ([0.1, 0.2, 0.3], "list(3 items)"),
            ({"a": 1}, "dict(1 keys)"),
            ("short", "short"),
        ],
    )
    def test_safe_log_value(self, value, expected) -> None:
        assert safe_log_value(value) == expected

    def test_long_strings_are_cut(self) -> None:
        rendered = safe_log_value("x" * 300, max_length=10)

        assert rendered == "x" * 10 + "... (300 chars)"

    def test_format_context(self) -> None:
        assert format_context({"a": 1, "b": "two"}) == "a=1 b=two"
        assert format_context({}) == ""

    def test_log_without_context_keeps_message(self, caplog) -> None:
        logger = logging.getLogger("recall.test")

        with caplog.at_level(logging.INFO, logger="recall.test"):
            log_with_context(logger, logging.INFO, "plain message")

        assert caplog.records[-1].getMessage() == "plain message"


class TestCorrelationId:
    """Test suite for correlation ID context handling."""

    def test_generates_id_when_none_given(self) -> None:
        value = set_correlation_id()
        try:
            assert value
            assert get_correlation_id() == value
        finally:
            clear_correlation_id()

        assert get_correlation_id() == ""
