"""
Pipeline observer.

Indexing, search and context assembly report what they do through an
observer handed to them at construction, instead of a module-level logger.
Observers can log, count, record for tests, or fan out to several sinks.

Dependencies: logging (stdlib), recall.observability.log_utils
System role: Structured event sink for pipeline stages
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Protocol

from recall.observability.correlation import get_correlation_id
from recall.observability.log_utils import log_with_context

# Event names counted in statistics
ITEM_SKIPPED = "item_skipped"
ITEM_FAILED = "item_failed"


@dataclass(frozen=True)
class PipelineEvent:
    """
    A single observation emitted by a pipeline stage.

    Attributes:
        stage: Emitting component (chunker, embedding, store, search, context, indexing)
        name: Machine-readable event name (e.g. "chunk_skipped")
        message: Human-readable summary
        level: Logging level the event maps to
        fields: Structured context
    """

    stage: str
    name: str
    message: str
    level: int = logging.INFO
    fields: dict[str, Any] = field(default_factory=dict)


class PipelineObserver(Protocol):
    """Sink for pipeline events."""

    def emit(self, event: PipelineEvent) -> None:
        """Receive one event."""
        ...


class NullObserver:
    """Observer that discards every event."""

    def emit(self, event: PipelineEvent) -> None:
        return None


class LoggingObserver:
    """Forward events to a stdlib logger as structured log lines."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        """
        Initialize logging observer.

        Args:
            logger: Target logger (defaults to ``recall.pipeline``)
        """
        self._logger = logger or logging.getLogger("recall.pipeline")

    def emit(self, event: PipelineEvent) -> None:
        context = dict(event.fields)
        correlation_id = get_correlation_id()
        if correlation_id:
            context["correlation_id"] = correlation_id
        log_with_context(
            self._logger,
            event.level,
            f"[{event.stage}] {event.message}",
            event=event.name,
            **context,
        )


class CountingObserver:
    """Count events by name; backs the skip/failure counters in statistics."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def emit(self, event: PipelineEvent) -> None:
        self._counts[event.name] += 1

    def count(self, name: str) -> int:
        """
        Number of events seen with the given name.

        Args:
            name: Event name

        Returns:
            int: Occurrences since creation or last reset
        """
        return self._counts[name]

    def reset(self) -> None:
        """Forget all counts."""
        self._counts.clear()


class RecordingObserver:
    """Keep every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[PipelineEvent] = []

    def emit(self, event: PipelineEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        """Event names in emission order."""
        return [event.name for event in self.events]


class CompositeObserver:
    """Fan one event out to several observers."""

    def __init__(self, *observers: PipelineObserver) -> None:
        self._observers = list(observers)

    def emit(self, event: PipelineEvent) -> None:
        for observer in self._observers:
            observer.emit(event)
