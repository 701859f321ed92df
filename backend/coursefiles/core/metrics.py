"""Prometheus metrics and the decorator that records file operation outcomes."""
import functools
from typing import Any, Callable, TypeVar, cast

from prometheus_client import Counter, Histogram

from coursefiles.core.errors import FilesError

F = TypeVar("F", bound=Callable[..., Any])

REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)
REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)
FILE_OPERATIONS = Counter(
    'file_operations_total',
    'File operations by outcome',
    ['operation', 'outcome']
)


def track_file_operation(operation: str) -> Callable[[F], F]:
    """Count each call of an async file operation, labelled by error type on failure."""
    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                result = await func(*args, **kwargs)
            except FilesError as e:
                FILE_OPERATIONS.labels(operation=operation, outcome=type(e).__name__).inc()
                raise
            except Exception:
                FILE_OPERATIONS.labels(operation=operation, outcome="error").inc()
                raise
            FILE_OPERATIONS.labels(operation=operation, outcome="success").inc()
            return result
        return cast(F, wrapper)
    return decorator
