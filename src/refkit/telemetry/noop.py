"""Default provider that discards every span."""

from __future__ import annotations

from typing import Any

from refkit.telemetry.base import SpanKind, TelemetryProvider


class NoopTelemetryProvider(TelemetryProvider):
    """Used by stores that were given no telemetry provider."""

    name = "noop"

    def start_span(
        self, kind: SpanKind, name: str, *, attributes: dict[str, Any] | None = None
    ) -> str:
        return ""

    def end_span(self, span_id: str, *, error: BaseException | None = None) -> None:
        pass

    def set_attribute(self, span_id: str, key: str, value: Any) -> None:
        pass
