"""Telemetry provider that logs span summaries."""

from __future__ import annotations

import logging
from typing import Any

from refkit.telemetry.base import Attr, Span, SpanTracker

logger = logging.getLogger("refkit.telemetry")


def _format_attrs(attributes: dict[str, Any]) -> str:
    shown = {k: v for k, v in attributes.items() if k != Attr.DURATION_MS}
    if not shown:
        return ""
    return " [" + ", ".join(f"{k}={v}" for k, v in shown.items()) + "]"


class ConsoleTelemetryProvider(SpanTracker):
    """Logs span start and end to the ``refkit.telemetry`` logger.

    Example::

        logging.basicConfig(level=logging.INFO)
        store = CosmosConversationReferenceStore(config, telemetry=ConsoleTelemetryProvider())
    """

    name = "console"

    def __init__(self, *, level: int = logging.INFO) -> None:
        super().__init__()
        self._level = level

    def _started(self, span: Span) -> None:
        logger.log(self._level, "[SPAN START] %s %s (id=%s)", span.kind, span.name, span.id)

    def _finished(self, span: Span) -> None:
        duration = span.attributes.get(Attr.DURATION_MS, 0.0)
        attrs = _format_attrs(span.attributes)
        if span.status == "error":
            logger.log(
                self._level,
                "[SPAN ERROR] %s %s %.1fms%s error=%s",
                span.kind,
                span.name,
                duration,
                attrs,
                span.error_message,
            )
        else:
            logger.log(
                self._level, "[SPAN END] %s %s %.1fms%s", span.kind, span.name, duration, attrs
            )

    def close(self) -> None:
        if self._open:
            logger.warning("ConsoleTelemetryProvider closed with %d active spans", len(self._open))
        self._open.clear()
