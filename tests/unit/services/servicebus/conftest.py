"""
Shared fixtures for Service Bus proxy unit tests.

Author: Ayodele Oladeji
Date: 2026-01-20
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx
import pytest

from sbrest.services.servicebus.proxy import ServiceBusRestProxy
from sbrest.services.servicebus.transport import HttpResponse, Transport


@dataclass
class RecordedRequest:
    """A request seen by the recording transport."""
    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    query_parameters: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


class RecordingTransport(Transport):
    """Transport recording requests and replaying canned responses."""

    def __init__(self):
        self.requests: List[RecordedRequest] = []
        self.responses: List[HttpResponse] = []

    def add_response(self, status_code=200, headers=None, body=b""):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.responses.append(
            HttpResponse(status_code=status_code, headers=httpx.Headers(headers or []), body=body)
        )

    def execute(self, method, path, headers, query_parameters, body):
        self.requests.append(
            RecordedRequest(method, path, dict(headers), dict(query_parameters), body)
        )
        if not self.responses:
            return HttpResponse(status_code=200)
        return self.responses.pop(0)

    @property
    def last_request(self) -> RecordedRequest:
        return self.requests[-1]


@pytest.fixture
def transport():
    """Create a recording transport."""
    return RecordingTransport()


@pytest.fixture
def proxy(transport):
    """Create a proxy over the recording transport."""
    return ServiceBusRestProxy(transport)
