"""Span helpers for the cache and token layers.

Spans carry only non-secret context: the namespace and the resource, never
the cache key (keys embed principal object IDs) and never payloads.
"""

import asyncio
import inspect
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

# Argument names that may be copied onto a span.
_RECORDABLE_ARGS = frozenset({"namespace", "resource", "authority", "expiration"})


def _attribute_value(value: Any) -> str | int | float | bool:
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _recorded_args(
    signature: inspect.Signature, names: tuple[str, ...], args: tuple, kwargs: dict
) -> dict[str, str | int | float | bool]:
    """Pick the allowed, requested arguments of one call by parameter name."""
    try:
        bound = signature.bind_partial(*args, **kwargs)
    except TypeError:
        return {}
    return {
        f"arg.{name}": _attribute_value(bound.arguments[name])
        for name in names
        if name in _RECORDABLE_ARGS and bound.arguments.get(name) is not None
    }


@contextmanager
def _span(name: str, attributes: dict[str, Any]) -> Iterator[trace.Span]:
    """Open a span, mark it ERROR and record the exception if the body raises."""
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        name, attributes=attributes, record_exception=False, set_status_on_exception=False
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
        span.set_status(Status(StatusCode.OK))


def traced(operation_name: str | None = None, record: tuple[str, ...] = ()) -> Callable:
    """Decorator to run a function (sync or async) inside a span.

    Args:
        operation_name: Span name (defaults to module.funcname).
        record: Parameter names whose values become span attributes, e.g.
            ("namespace",). Names outside the allowlist are ignored.

    Returns:
        Decorated function.
    """

    def decorator(func: Callable) -> Callable:
        span_name = operation_name or f"{func.__module__}.{func.__name__}"
        signature = inspect.signature(func)

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _span(span_name, _recorded_args(signature, record, args, kwargs)):
                return await func(*args, **kwargs)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _span(span_name, _recorded_args(signature, record, args, kwargs)):
                return func(*args, **kwargs)

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def add_span_event(name: str, attributes: dict | None = None) -> None:
    """Add an event to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name, attributes=attributes or {})


def set_span_error(exception: BaseException) -> None:
    """Mark the current span as error and record the exception."""
    span = trace.get_current_span()
    if span and span.is_recording():
        span.set_status(Status(StatusCode.ERROR, str(exception)))
        span.record_exception(exception)
