"""Shared telemetry: logging setup, OpenTelemetry config, tracing helpers, events."""

from explorer.shared.telemetry.events import SpanTelemetryProvider, TelemetryProvider
from explorer.shared.telemetry.logging import key_digest, setup_logging
from explorer.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)
from explorer.shared.telemetry.tracing import (
    add_span_event,
    set_span_error,
    traced,
)

__all__ = [
    "setup_logging",
    "key_digest",
    "TelemetryConfig",
    "get_telemetry",
    "set_telemetry",
    "TelemetryProvider",
    "SpanTelemetryProvider",
    "traced",
    "add_span_event",
    "set_span_error",
]
