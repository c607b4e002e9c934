"""Telemetry hooks for store operations.

Stores report every engine call as a span. A provider decides what happens
to them: :class:`~refkit.telemetry.noop.NoopTelemetryProvider` drops them,
:class:`~refkit.telemetry.mock.MockTelemetryProvider` keeps them for test
assertions and :class:`~refkit.telemetry.console.ConsoleTelemetryProvider`
logs them.
"""

from __future__ import annotations

import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar


class SpanKind(StrEnum):
    """Span classifications for telemetry."""

    STORE_QUERY = "store.query"
    BACKEND_CONNECT = "backend.connect"
    NOTIFY_BROADCAST = "notify.broadcast"
    CUSTOM = "custom"


class Attr:
    """Well-known span attribute keys."""

    # Store
    STORE_OPERATION = "store.operation"
    STORE_BACKEND = "store.backend"
    STORE_CONTAINER = "store.container"
    STORE_OVERWRITE = "store.overwrite"
    STORE_PAGE_SIZE = "store.page_size"
    STORE_RESULT_COUNT = "store.result_count"
    STORE_CHANGED = "store.changed"

    # Notify
    NOTIFY_SENT = "notify.sent"
    NOTIFY_FAILED = "notify.failed"

    # Timing, set on every finished span
    DURATION_MS = "duration_ms"


@dataclass
class Span:
    """One timed store or broadcast operation."""

    kind: SpanKind
    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    start_time: float = field(default_factory=time.monotonic)
    end_time: float | None = None
    status: str = "ok"
    error_message: str | None = None

    @property
    def duration_ms(self) -> float | None:
        """Duration in milliseconds, or None while the span is open."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000


class TelemetryProvider(ABC):
    """Receives spans from stores and the broadcast helper."""

    name: ClassVar[str] = "abstract"

    @abstractmethod
    def start_span(
        self, kind: SpanKind, name: str, *, attributes: dict[str, Any] | None = None
    ) -> str:
        """Open a span and return its id."""
        ...

    @abstractmethod
    def end_span(self, span_id: str, *, error: BaseException | None = None) -> None:
        """Close a span, marking it failed if *error* is given."""
        ...

    @abstractmethod
    def set_attribute(self, span_id: str, key: str, value: Any) -> None:
        """Set an attribute on an open span."""
        ...

    def close(self) -> None:  # noqa: B027
        """Flush and release provider resources."""

    @contextmanager
    def span(
        self, kind: SpanKind, name: str, *, attributes: dict[str, Any] | None = None
    ) -> Generator[str, None, None]:
        """Open a span for the duration of the block and yield its id.

        A span left by an exception, including cancellation, is closed with
        error status before the exception propagates.
        """
        span_id = self.start_span(kind, name, attributes=attributes)
        try:
            yield span_id
        except BaseException as exc:
            self.end_span(span_id, error=exc)
            raise
        self.end_span(span_id)


class SpanTracker(TelemetryProvider):
    """Provider base that keeps open spans by id.

    Subclasses get each span once when it opens and once when it is
    finished, timed and given its final status.
    """

    def __init__(self) -> None:
        self._open: dict[str, Span] = {}

    def start_span(
        self, kind: SpanKind, name: str, *, attributes: dict[str, Any] | None = None
    ) -> str:
        span = Span(kind=kind, name=name, attributes=dict(attributes or {}))
        self._open[span.id] = span
        self._started(span)
        return span.id

    def end_span(self, span_id: str, *, error: BaseException | None = None) -> None:
        span = self._open.pop(span_id, None)
        if span is None:
            return
        span.end_time = time.monotonic()
        if error is not None:
            span.status = "error"
            span.error_message = str(error) or type(error).__name__
        span.attributes[Attr.DURATION_MS] = round(span.duration_ms or 0.0, 3)
        self._finished(span)

    def set_attribute(self, span_id: str, key: str, value: Any) -> None:
        span = self._open.get(span_id)
        if span is not None:
            span.attributes[key] = value

    @property
    def open_spans(self) -> list[Span]:
        return list(self._open.values())

    def _started(self, span: Span) -> None:  # noqa: B027
        pass

    @abstractmethod
    def _finished(self, span: Span) -> None: ...
