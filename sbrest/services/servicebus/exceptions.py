"""
Service Bus Exception Hierarchy

Exception types raised by the REST proxy, with error codes and context.

Author: Ayodele Oladeji
Date: 2026-01-12
"""

import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterable, Optional, Type


class ServiceBusError(Exception):
    """
    Base exception for all Service Bus errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g., 'EntityNotFound')
        details: Additional context (status_code, path, etc.)
    """

    error_code: str = "ServiceBusError"
    is_transient: bool = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# ========== Caller Errors ==========

class InvalidArgumentError(ServiceBusError, ValueError):
    """Raised when a caller-supplied value is missing, empty or malformed."""
    error_code = "InvalidArgument"

    def __init__(
        self,
        argument: str,
        reason: str,
        message: Optional[str] = None
    ):
        message = message or f"Invalid argument '{argument}': {reason}"
        details = {"argument": argument, "reason": reason}
        super().__init__(message, details=details)


class InvalidOperationError(ServiceBusError):
    """Raised when an operation is invalid in the current state of an entity."""
    error_code = "InvalidOperation"

    def __init__(
        self,
        operation: str,
        reason: str,
        message: Optional[str] = None
    ):
        message = message or f"Invalid operation '{operation}': {reason}"
        details = {"operation": operation, "reason": reason}
        super().__init__(message, details=details)


# ========== Transport Errors ==========

class ServiceBusConnectionError(ServiceBusError):
    """Raised when the connection to Service Bus fails."""
    error_code = "ConnectionError"
    is_transient = True

    def __init__(
        self,
        reason: str,
        message: Optional[str] = None
    ):
        message = message or f"Connection error: {reason}"
        details = {"reason": reason}
        super().__init__(message, details=details)


class OperationTimeoutError(ServiceBusError):
    """Raised when a request times out."""
    error_code = "OperationTimeout"
    is_transient = True

    def __init__(
        self,
        operation: str,
        timeout_seconds: Optional[float],
        message: Optional[str] = None
    ):
        message = message or f"Operation '{operation}' timed out after {timeout_seconds}s"
        details = {"operation": operation, "timeout_seconds": timeout_seconds}
        super().__init__(message, details=details)


# ========== Response Errors ==========

class ServiceBusHttpError(ServiceBusError):
    """
    Raised when the service answers with a status code the operation does not accept.

    Attributes:
        status_code: Status code returned by the service
        body: Raw response body, kept for diagnostics
        detail: Text of the <Detail> element of a service error body, if any
    """
    error_code = "UnexpectedStatus"

    def __init__(
        self,
        status_code: int,
        expected: Iterable[int],
        method: str,
        path: str,
        body: bytes = b"",
        message: Optional[str] = None
    ):
        expected = sorted(expected)
        detail = _error_detail(body)
        if message is None:
            message = f"{method} {path} returned {status_code}, expected {expected}"
            if detail:
                message = f"{message}: {detail}"
        details = {
            "status_code": status_code,
            "expected": expected,
            "method": method,
            "path": path,
        }
        super().__init__(message, details=details)
        self.status_code = status_code
        self.body = body
        self.detail = detail


class UnauthorizedError(ServiceBusHttpError):
    """Raised when the request is not authorized (401)."""
    error_code = "Unauthorized"


class QuotaExceededError(ServiceBusHttpError):
    """Raised when a namespace quota is exceeded (403)."""
    error_code = "QuotaExceeded"


class EntityNotFoundError(ServiceBusHttpError):
    """Raised when a queue, topic, subscription, rule or message is not found (404)."""
    error_code = "EntityNotFound"


class EntityAlreadyExistsError(ServiceBusHttpError):
    """Raised when creating an entity that already exists (409)."""
    error_code = "EntityAlreadyExists"


class MessageLockLostError(ServiceBusHttpError):
    """Raised when a message lock has expired or is invalid (410)."""
    error_code = "MessageLockLost"


class InternalServerError(ServiceBusHttpError):
    """Raised when the service fails internally (500); the request may be retried."""
    error_code = "InternalServerError"
    is_transient = True


class ServerBusyError(ServiceBusHttpError):
    """Raised when the service is temporarily unavailable (503)."""
    error_code = "ServerBusy"
    is_transient = True


# Status code to exception mapping
STATUS_CODE_EXCEPTIONS: Dict[int, Type[ServiceBusHttpError]] = {
    401: UnauthorizedError,
    403: QuotaExceededError,
    404: EntityNotFoundError,
    409: EntityAlreadyExistsError,
    410: MessageLockLostError,
    500: InternalServerError,
    503: ServerBusyError,
}


class ServiceBusDecodeError(ServiceBusError):
    """Raised when a response body or header does not parse into the expected structure."""
    error_code = "DecodeError"

    def __init__(
        self,
        reason: str,
        message: Optional[str] = None
    ):
        message = message or f"Unable to decode response: {reason}"
        details = {"reason": reason}
        super().__init__(message, details=details)


# ========== Utility Functions ==========

def _error_detail(body: bytes) -> Optional[str]:
    """Extract the Detail text of a service error body, if there is one."""
    if not body:
        return None
    try:
        root = ET.fromstring(body)
    except ET.ParseError:
        return None
    detail = root.find("{*}Detail")
    if detail is None:
        detail = root.find("Detail")
    return detail.text if detail is not None else None


def error_for_status(
    status_code: int,
    expected: Iterable[int],
    method: str,
    path: str,
    body: bytes = b""
) -> ServiceBusHttpError:
    """
    Build the exception matching an unexpected status code.

    Args:
        status_code: Status code returned by the service
        expected: Status codes the operation accepts
        method: HTTP method of the request
        path: Request path
        body: Response body

    Returns:
        ServiceBusHttpError subclass instance
    """
    error_class = STATUS_CODE_EXCEPTIONS.get(status_code, ServiceBusHttpError)
    return error_class(status_code, expected, method, path, body)


def is_transient_error(error: Exception) -> bool:
    """
    Determine if an error is transient and can be retried by the caller.

    Args:
        error: Exception to check

    Returns:
        True if error is transient
    """
    if isinstance(error, ServiceBusError):
        return error.is_transient

    if isinstance(error, (
        ConnectionError,
        ConnectionRefusedError,
        ConnectionResetError,
        TimeoutError,
    )):
        return True

    return False
