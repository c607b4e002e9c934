"""Mock telemetry provider that records spans for test assertions."""

from __future__ import annotations

from refkit.telemetry.base import Span, SpanKind, SpanTracker


class MockTelemetryProvider(SpanTracker):
    """Keeps every finished span in order.

    Example::

        telemetry = MockTelemetryProvider()
        store = InMemoryConversationReferenceStore(telemetry=telemetry)
        await store.add("k", {"conversation": {"id": "c1"}})
        (span,) = telemetry.get_spans(SpanKind.STORE_QUERY)
        assert span.attributes[Attr.STORE_CHANGED] is True
    """

    name = "mock"

    def __init__(self) -> None:
        super().__init__()
        self.spans: list[Span] = []

    def _finished(self, span: Span) -> None:
        self.spans.append(span)

    def get_spans(self, kind: SpanKind) -> list[Span]:
        """Finished spans of one kind."""
        return [s for s in self.spans if s.kind == kind]

    def reset(self) -> None:
        self._open.clear()
        self.spans.clear()
