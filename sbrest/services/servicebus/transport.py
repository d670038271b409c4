"""
Service Bus HTTP Transport

Request description, response container, and the transport interface the
REST proxy sends requests through, with an httpx-based implementation.

Author: Ayodele Oladeji
Date: 2026-01-15
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Set, Union

import httpx

from .constants import (
    BROKER_PROPERTIES,
    CONTENT_TYPE,
    DATE,
    DEFAULT_REQUEST_TIMEOUT,
    HTTP_GET,
    LOCATION,
)
from .exceptions import OperationTimeoutError, ServiceBusConnectionError
from .logging_utils import StructuredLogger

logger = StructuredLogger('sbrest.services.servicebus.transport')


@dataclass
class HttpCallContext:
    """
    Everything needed to issue one request.

    Attributes:
        method: HTTP method
        path: Path relative to the namespace URI, or an absolute URL
        headers: Request headers
        query_parameters: Query string parameters
        body: Request body
        status_codes: Status codes the operation accepts
    """
    method: str = HTTP_GET
    path: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    query_parameters: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    status_codes: Set[int] = field(default_factory=set)

    def add_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def add_query_parameter(self, name: str, value: Union[str, int]) -> None:
        self.query_parameters[name] = str(value)

    def add_status_code(self, status_code: int) -> None:
        self.status_codes.add(status_code)

    def set_body(self, body: Union[str, bytes, None]) -> None:
        self.body = body.encode("utf-8") if isinstance(body, str) else body


@dataclass
class HttpResponse:
    """
    Response of one request.

    Headers keep the order the service sent them in and are looked up
    case-insensitively.
    """
    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get(CONTENT_TYPE)

    @property
    def broker_properties(self) -> Optional[str]:
        return self.headers.get(BROKER_PROPERTIES)

    @property
    def location(self) -> Optional[str]:
        return self.headers.get(LOCATION)

    @property
    def date(self) -> Optional[str]:
        return self.headers.get(DATE)


class Transport(ABC):
    """
    Abstract transport executing requests against a Service Bus namespace.

    Implementations own connection lifecycle and authentication, and raise
    ServiceBusConnectionError or OperationTimeoutError on connection or
    protocol failures. Status codes are not checked here.
    """

    @abstractmethod
    def execute(
        self,
        method: str,
        path: str,
        headers: Mapping[str, str],
        query_parameters: Mapping[str, str],
        body: Optional[bytes],
    ) -> HttpResponse:
        """
        Execute a request.

        Args:
            method: HTTP method
            path: Path relative to the namespace URI, or an absolute URL
            headers: Request headers
            query_parameters: Query string parameters
            body: Request body

        Returns:
            HttpResponse
        """

    def close(self) -> None:
        """Release resources held by the transport."""


def _is_absolute(path: str) -> bool:
    return path.startswith(("http://", "https://"))


class HttpxTransport(Transport):
    """
    Transport backed by an httpx.Client.

    A client passed in by the caller (for example a pre-configured client
    or a test client) is used as-is and left open on close().
    """

    def __init__(
        self,
        base_uri: str,
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT,
        auth: Optional[httpx.Auth] = None,
        headers: Optional[Mapping[str, str]] = None,
        verify: bool = True,
    ):
        if not base_uri:
            raise ValueError("base_uri cannot be empty")
        self.base_uri = base_uri.rstrip("/") + "/"
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout,
            auth=auth,
            headers=dict(headers or {}),
            verify=verify,
        )

    def url_for(self, path: str) -> str:
        """Resolve a request path against the namespace URI."""
        if _is_absolute(path):
            return path
        return self.base_uri + path.lstrip("/")

    def execute(
        self,
        method: str,
        path: str,
        headers: Mapping[str, str],
        query_parameters: Mapping[str, str],
        body: Optional[bytes],
    ) -> HttpResponse:
        url = self.url_for(path)
        try:
            response = self._client.request(
                method,
                url,
                headers=dict(headers),
                params=dict(query_parameters) or None,
                content=body,
            )
        except httpx.TimeoutException as e:
            logger.warning(
                f"Request timed out: {method} {url}",
                method=method,
                url=url,
                error_type=type(e).__name__,
            )
            raise OperationTimeoutError(f"{method} {path}", self.timeout) from e
        except httpx.TransportError as e:
            logger.warning(
                f"Request failed: {method} {url}",
                method=method,
                url=url,
                error_type=type(e).__name__,
            )
            raise ServiceBusConnectionError(str(e) or type(e).__name__) from e

        return HttpResponse(
            status_code=response.status_code,
            headers=response.headers,
            body=response.content,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
