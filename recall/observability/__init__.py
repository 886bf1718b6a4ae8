"""
Observability module.

Provides logging configuration, correlation ID tracking and the pipeline
observer that indexing and search stages report through.
"""

from recall.observability.observer import (
    ITEM_FAILED,
    ITEM_SKIPPED,
    CompositeObserver,
    CountingObserver,
    LoggingObserver,
    NullObserver,
    PipelineEvent,
    PipelineObserver,
    RecordingObserver,
)

__all__ = [
    "ITEM_FAILED",
    "ITEM_SKIPPED",
    "CompositeObserver",
    "CountingObserver",
    "LoggingObserver",
    "NullObserver",
    "PipelineEvent",
    "PipelineObserver",
    "RecordingObserver",
]
