import functools
import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional, Tuple, Type, TypeVar

from opentelemetry.trace import SpanKind, Status, StatusCode

from queryflow.telemetry import get_tracer

F = TypeVar('F', bound=Callable[..., Any])

logger = logging.getLogger(__name__)

AttributeGetter = Callable[..., Optional[Dict[str, Any]]]


def traced(
    span_name: Optional[str] = None,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: Optional[Dict[str, Any]] = None,
    attribute_getter: Optional[AttributeGetter] = None,
) -> Callable[[F], F]:
    """Run the decorated function inside an OpenTelemetry span.

    Args:
        span_name: Span name, defaults to the qualified function name
        kind: Span kind
        attributes: Static attributes
        attribute_getter: Called with the function's arguments, returns
            attributes known only at call time. ``None`` values are skipped.

    Exceptions are recorded on the span, which is marked as failed, and
    re-raised unchanged.
    """

    def decorator(func: F) -> F:
        name = span_name or f"{func.__module__}.{func.__qualname__}"

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            span_attributes = dict(attributes or {})
            if attribute_getter is not None:
                span_attributes.update(attribute_getter(*args, **kwargs) or {})

            with get_tracer(func.__module__).start_as_current_span(
                name,
                kind=kind,
                attributes={k: v for k, v in span_attributes.items() if v is not None},
                record_exception=False,
                set_status_on_exception=False,
            ) as span:
                try:
                    return func(*args, **kwargs)
                except Exception as exc:
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, str(exc)))
                    raise

        return wrapper  # type: ignore[return-value]

    return decorator


def _backoff_delays(initial_delay: float, max_delay: float, exponential_base: float) -> Iterator[float]:
    delay = initial_delay
    while True:
        yield delay
        delay = min(delay * exponential_base, max_delay)


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    retry_on: Tuple[Type[Exception], ...] = (Exception,),
) -> Callable[[F], F]:
    """Retry a call on the given exception types with exponential backoff.

    The call is attempted at most ``max_retries + 1`` times; the last
    exception propagates.

    Example:
        >>> @retry_with_backoff(max_retries=2, retry_on=(OperationalError,))
        ... def insert_row():
        ...     ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            delays = _backoff_delays(initial_delay, max_delay, exponential_base)
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except retry_on as exc:
                    attempt += 1
                    if attempt > max_retries:
                        logger.error(
                            "Giving up after %d attempts", attempt,
                            extra={"retry.function": func.__qualname__, "error": str(exc)},
                        )
                        raise
                    delay = next(delays)
                    logger.warning(
                        "Attempt %d failed, retrying in %.2fs", attempt, delay,
                        extra={"retry.function": func.__qualname__, "error": str(exc)},
                    )
                    time.sleep(delay)

        return wrapper  # type: ignore[return-value]

    return decorator
