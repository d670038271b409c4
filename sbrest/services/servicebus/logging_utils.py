"""
Structured Logging for the Service Bus REST proxy

Records carry their fields in a ``context`` attribute, which the JSON
formatter in sbrest.core.logging_config writes out. Every proxy operation
runs inside a correlation scope so that the requests it sends share one ID.

Author: Ayodele Oladeji
Date: 2026-01-15
"""

import logging
import time
import uuid
from contextvars import Token
from functools import wraps
from typing import Any, Optional

from sbrest.core.logging_config import correlation_id


class CorrelationContext:
    """
    Correlation ID scope.

    Entering reuses the ID already active (nested operations share their
    caller's ID) or starts a new one; leaving restores the previous value.
    """

    def __init__(self, corr_id: Optional[str] = None):
        self._requested = corr_id
        self._token: Optional[Token] = None

    def __enter__(self) -> str:
        corr_id = self._requested or correlation_id.get() or str(uuid.uuid4())
        self._token = correlation_id.set(corr_id)
        return corr_id

    def __exit__(self, *exc_info) -> None:
        if self._token is not None:
            correlation_id.reset(self._token)
            self._token = None

    @staticmethod
    def current() -> Optional[str]:
        return correlation_id.get()


class StructuredLogger:
    """Logger whose keyword arguments become the record's context fields."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _emit(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        if not self.logger.isEnabledFor(level):
            return
        context = {key: value for key, value in fields.items() if value is not None}
        self.logger.log(level, message, exc_info=exc_info, extra={"context": context})

    def debug(self, message: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self._emit(logging.ERROR, message, exc_info=exc_info, **fields)

    def log_operation(self, operation: str, entity_type: str, entity_name: str, **fields: Any) -> None:
        """Log a change to a queue, topic, subscription or rule."""
        self.info(
            f"{operation}: {entity_type}/{entity_name}",
            operation=operation,
            entity_type=entity_type,
            entity_name=entity_name,
            **fields
        )

    def log_request(self, method: str, path: str, **fields: Any) -> None:
        self.debug(
            f"Request: {method} {path}",
            method=method,
            path=path,
            correlation_id=CorrelationContext.current(),
            **fields
        )

    def log_response(self, method: str, path: str, status_code: int, accepted: bool = True, **fields: Any) -> None:
        """Log a response; one with a status the operation does not accept is a warning."""
        self._emit(
            logging.DEBUG if accepted else logging.WARNING,
            f"Response: {method} {path} -> {status_code}",
            method=method,
            path=path,
            status_code=status_code,
            correlation_id=CorrelationContext.current(),
            **fields
        )


def track_operation_time(logger: StructuredLogger, operation: Optional[str] = None):
    """
    Time a proxy operation inside its own correlation scope.

    Completion is logged at debug level. A failure is logged as an error,
    with the HTTP status when the exception carries one, and re-raised.
    """
    def decorator(func):
        name = operation or func.__name__

        @wraps(func)
        def wrapper(*args, **kwargs):
            with CorrelationContext():
                started = time.perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    logger.error(
                        f"Error in {name}: {e}",
                        operation=name,
                        error_type=type(e).__name__,
                        status_code=getattr(e, "status_code", None),
                        duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    )
                    raise
                logger.debug(
                    f"Operation completed: {name}",
                    operation=name,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )
                return result
        return wrapper
    return decorator
