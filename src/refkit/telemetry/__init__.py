"""Span reporting for store operations."""

from refkit.telemetry.base import Attr, Span, SpanKind, SpanTracker, TelemetryProvider
from refkit.telemetry.console import ConsoleTelemetryProvider
from refkit.telemetry.mock import MockTelemetryProvider
from refkit.telemetry.noop import NoopTelemetryProvider

__all__ = [
    "Attr",
    "ConsoleTelemetryProvider",
    "MockTelemetryProvider",
    "NoopTelemetryProvider",
    "Span",
    "SpanKind",
    "SpanTracker",
    "TelemetryProvider",
]
