"""Telemetry provider: event and exception notifications.

Components that report outcomes (the cache service, token management)
take an optional TelemetryProvider. Passing None disables reporting;
it never changes behavior.
"""

import logging
from typing import Any, Protocol

from explorer.shared.telemetry.tracing import add_span_event, set_span_error

logger = logging.getLogger(__name__)


class TelemetryProvider(Protocol):
    """Sink for custom events and tracked exceptions."""

    def track_event(self, name: str, properties: dict[str, Any] | None = None) -> None:
        """Record a named event with optional string-able properties."""
        ...

    def track_exception(
        self, exception: BaseException, properties: dict[str, Any] | None = None
    ) -> None:
        """Record an exception that is about to propagate."""
        ...


class SpanTelemetryProvider:
    """TelemetryProvider that writes to the current OpenTelemetry span and the log."""

    def track_event(self, name: str, properties: dict[str, Any] | None = None) -> None:
        attributes = {k: str(v) for k, v in (properties or {}).items()}
        add_span_event(name, attributes)
        logger.debug("Telemetry event %s %s", name, attributes)

    def track_exception(
        self, exception: BaseException, properties: dict[str, Any] | None = None
    ) -> None:
        set_span_error(exception)
        logger.warning(
            "Tracked exception %s: %s %s",
            type(exception).__name__,
            exception,
            properties or {},
        )
