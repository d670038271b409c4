"""
In-memory Service Bus REST endpoint for integration tests.

A FastAPI application speaking the Atom/XML management protocol and the
message protocol (BrokerProperties and Location headers), served through
fastapi.testclient.TestClient so the proxy runs over a real HTTP stack.

Author: Ayodele Oladeji
Date: 2026-01-21
"""

import copy
import itertools
import json
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from xml.sax.saxutils import escape

import pytest
from fastapi import FastAPI, Request, Response
from fastapi.testclient import TestClient

from sbrest.services.servicebus.proxy import ServiceBusRestProxy
from sbrest.services.servicebus.transport import HttpxTransport

BASE_URI = "http://testserver/"
ATOM = "{http://www.w3.org/2005/Atom}"
SB_NAMESPACE = "http://schemas.microsoft.com/netservices/2010/10/servicebus/connect"
SB = f"{{{SB_NAMESPACE}}}"
ENTRY_MEDIA_TYPE = "application/atom+xml;type=entry;charset=utf-8"
FEED_MEDIA_TYPE = "application/atom+xml;type=feed;charset=utf-8"

DEFAULT_RULE = f"""<RuleDescription xmlns="{SB_NAMESPACE}" xmlns:i="http://www.w3.org/2001/XMLSchema-instance">
  <Filter i:type="TrueFilter"><SqlExpression>1=1</SqlExpression><CompatibilityLevel>20</CompatibilityLevel></Filter>
  <Action i:type="EmptyRuleAction"/>
  <Name>$Default</Name>
</RuleDescription>"""

# Request headers that are not custom message properties
PROTOCOL_HEADERS = {
    "host", "accept", "accept-encoding", "connection", "user-agent",
    "content-length", "content-type", "brokerproperties",
}


@dataclass
class StoredMessage:
    """A message held by the fake service."""
    body: bytes
    content_type: Optional[str]
    broker_properties: Dict[str, object]
    properties: Dict[str, str]
    sequence_number: int
    delivery_count: int = 0
    lock_token: Optional[str] = None


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _error(status_code: int, detail: str) -> Response:
    body = f"<Error><Code>{status_code}</Code><Detail>{escape(detail)}</Detail></Error>"
    return Response(body, status_code=status_code, media_type="application/xml")


def _entry(path: str, name: str, description: ET.Element) -> ET.Element:
    entry = ET.Element(f"{ATOM}entry")
    ET.SubElement(entry, f"{ATOM}id").text = BASE_URI + path
    ET.SubElement(entry, f"{ATOM}title", {"type": "text"}).text = name
    ET.SubElement(entry, f"{ATOM}updated").text = _now()
    content = ET.SubElement(entry, f"{ATOM}content", {"type": "application/xml"})
    content.append(copy.deepcopy(description))
    return entry


def _entry_response(entry: ET.Element, status_code: int = 200) -> Response:
    return Response(ET.tostring(entry, encoding="utf-8"), status_code=status_code, media_type=ENTRY_MEDIA_TYPE)


def _feed_response(request: Request, title: str, entries: List[ET.Element]) -> Response:
    skip = int(request.query_params.get("$skip", 0))
    top = request.query_params.get("$top")
    entries = entries[skip:]
    if top is not None:
        entries = entries[:int(top)]

    feed = ET.Element(f"{ATOM}feed")
    ET.SubElement(feed, f"{ATOM}title", {"type": "text"}).text = title
    ET.SubElement(feed, f"{ATOM}id").text = BASE_URI + str(request.url.path).lstrip("/")
    feed.extend(entries)
    return Response(ET.tostring(feed, encoding="utf-8"), media_type=FEED_MEDIA_TYPE)


class FakeServiceBus:
    """In-memory namespace with queues, topics, subscriptions and rules."""

    def __init__(self):
        self.queues: Dict[str, ET.Element] = {}
        self.topics: Dict[str, ET.Element] = {}
        self.subscriptions: Dict[Tuple[str, str], ET.Element] = {}
        self.rules: Dict[Tuple[str, str, str], ET.Element] = {}
        self.messages: Dict[str, List[StoredMessage]] = {}
        self.requests: List[Tuple[str, str]] = []
        self._sequence = itertools.count(1)
        self.app = self._build_app()

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.api_route("/{path:path}", methods=["GET", "PUT", "POST", "DELETE"])
        async def dispatch(path: str, request: Request) -> Response:
            self.requests.append((request.method, path))
            return self.handle(request.method, path, request, await request.body())

        return app

    def handle(self, method: str, path: str, request: Request, body: bytes) -> Response:
        segments = [s for s in path.split("/") if s]

        if segments[:1] == ["$Resources"] and method == "GET":
            if segments[1:] == ["Queues"]:
                entries = [_entry(n, n, d) for n, d in self.queues.items()]
                return _feed_response(request, "Queues", entries)
            if segments[1:] == ["Topics"]:
                entries = [_entry(n, n, d) for n, d in self.topics.items()]
                return _feed_response(request, "Topics", entries)

        if len(segments) == 1:
            return self._entity(method, segments[0], body)
        if len(segments) >= 2 and segments[1] == "messages":
            return self._queue_messages(method, segments, request, body)
        if len(segments) >= 2 and segments[1] == "subscriptions":
            return self._subscriptions(method, segments, path, request, body)

        return _error(404, f"No route for {method} {path}")

    # Entities

    @staticmethod
    def _description(body: bytes) -> Optional[ET.Element]:
        try:
            content = ET.fromstring(body).find(f"{ATOM}content")
        except ET.ParseError:
            return None
        if content is None or not len(content):
            return None
        return content[0]

    def _entity(self, method: str, name: str, body: bytes) -> Response:
        if method == "PUT":
            if name in self.queues or name in self.topics:
                return _error(409, f"Entity '{name}' already exists")
            description = self._description(body)
            if description is None:
                return _error(400, "Request body is not an Atom entry")
            if description.tag == f"{SB}QueueDescription":
                self.queues[name] = description
                self.messages[name] = []
            elif description.tag == f"{SB}TopicDescription":
                self.topics[name] = description
            else:
                return _error(400, f"Unexpected description {description.tag}")
            return _entry_response(_entry(name, name, description), 201)

        if name in self.queues:
            if method == "GET":
                description = copy.deepcopy(self.queues[name])
                count = description.find(f"{SB}MessageCount")
                if count is None:
                    count = ET.SubElement(description, f"{SB}MessageCount")
                count.text = str(len(self.messages[name]))
                return _entry_response(_entry(name, name, description))
            if method == "DELETE":
                del self.queues[name]
                del self.messages[name]
                return Response(status_code=200)

        if name in self.topics:
            if method == "GET":
                return _entry_response(_entry(name, name, self.topics[name]))
            if method == "DELETE":
                del self.topics[name]
                for key in [k for k in self.subscriptions if k[0] == name]:
                    del self.subscriptions[key]
                    del self.messages[f"{name}/subscriptions/{key[1]}"]
                return Response(status_code=200)

        return _error(404, f"The messaging entity '{name}' could not be found.")

    # Messages

    def _send(self, name: str, request: Request, body: bytes) -> Response:
        header = request.headers.get("brokerproperties")
        broker_properties = json.loads(header) if header else {}
        broker_properties.setdefault("MessageId", uuid.uuid4().hex)
        properties = {
            key: value for key, value in request.headers.items()
            if key.lower() not in PROTOCOL_HEADERS
        }

        if name in self.queues:
            targets = [name]
        else:
            targets = [f"{name}/subscriptions/{sub}" for (topic, sub) in self.subscriptions if topic == name]

        for target in targets:
            self.messages[target].append(StoredMessage(
                body=body,
                content_type=request.headers.get("content-type"),
                broker_properties=dict(broker_properties),
                properties=properties,
                sequence_number=next(self._sequence),
            ))
        return Response(status_code=200)

    @staticmethod
    def _message_headers(message: StoredMessage) -> Dict[str, str]:
        broker_properties = dict(message.broker_properties)
        broker_properties["SequenceNumber"] = message.sequence_number
        broker_properties["DeliveryCount"] = message.delivery_count
        if message.lock_token:
            broker_properties["LockToken"] = message.lock_token
        headers = dict(message.properties)
        headers["BrokerProperties"] = json.dumps(broker_properties)
        if message.content_type:
            headers["Content-Type"] = message.content_type
        return headers

    def _queue_messages(self, method: str, segments: List[str], request: Request, body: bytes) -> Response:
        name = segments[0]
        if name not in self.queues and name not in self.topics:
            return _error(404, f"The messaging entity '{name}' could not be found.")

        if segments[1:] == ["messages"] and method == "POST":
            return self._send(name, request, body)

        if segments[1:] == ["messages", "head"] and name in self.queues:
            available = [m for m in self.messages[name] if m.lock_token is None]
            if not available:
                return Response(status_code=204)
            message = available[0]
            message.delivery_count += 1
            if method == "DELETE":
                self.messages[name].remove(message)
                return Response(message.body, status_code=200, headers=self._message_headers(message))
            if method == "POST":
                message.lock_token = str(uuid.uuid4())
                headers = self._message_headers(message)
                headers["Location"] = f"{BASE_URI}{name}/messages/{message.sequence_number}/{message.lock_token}"
                return Response(message.body, status_code=201, headers=headers)

        if len(segments) == 4 and method in ("PUT", "DELETE"):
            sequence_number, lock_token = segments[2], segments[3]
            for message in self.messages.get(name, []):
                if str(message.sequence_number) == sequence_number and message.lock_token == lock_token:
                    if method == "PUT":
                        message.lock_token = None
                    else:
                        self.messages[name].remove(message)
                    return Response(status_code=200)
            return _error(410, "The lock supplied is invalid. Either the lock expired, or the message has already been removed from the queue.")

        return _error(405, f"{method} not supported")

    # Subscriptions and rules

    def _subscriptions(
        self, method: str, segments: List[str], path: str, request: Request, body: bytes
    ) -> Response:
        topic = segments[0]
        if topic not in self.topics:
            return _error(404, f"The messaging entity '{topic}' could not be found.")

        if len(segments) == 2 and method == "GET":
            entries = [
                _entry(f"{topic}/subscriptions/{sub}", sub, d)
                for (t, sub), d in self.subscriptions.items() if t == topic
            ]
            return _feed_response(request, "Subscriptions", entries)

        sub = segments[2]
        key = (topic, sub)
        sub_path = f"{topic}/subscriptions/{sub}"

        if len(segments) == 3:
            if method == "PUT":
                if key in self.subscriptions:
                    return _error(409, f"Subscription '{sub}' already exists")
                description = self._description(body)
                if description is None or description.tag != f"{SB}SubscriptionDescription":
                    return _error(400, "Request body is not a SubscriptionDescription entry")
                self.subscriptions[key] = description
                self.messages[sub_path] = []
                self.rules[(topic, sub, "$Default")] = ET.fromstring(DEFAULT_RULE)
                return _entry_response(_entry(sub_path, sub, description), 201)
            if key not in self.subscriptions:
                return _error(404, f"Subscription '{sub}' could not be found.")
            if method == "GET":
                return _entry_response(_entry(sub_path, sub, self.subscriptions[key]))
            if method == "DELETE":
                del self.subscriptions[key]
                del self.messages[sub_path]
                for rule_key in [k for k in self.rules if k[:2] == key]:
                    del self.rules[rule_key]
                return Response(status_code=200)

        if key not in self.subscriptions:
            return _error(404, f"Subscription '{sub}' could not be found.")

        if segments[3:] == ["messages", "head"] and method == "GET":
            pending = self.messages[sub_path]
            if not pending:
                return Response(status_code=204)
            message = pending[0]
            entry = ET.Element(f"{ATOM}entry")
            ET.SubElement(entry, f"{ATOM}title", {"type": "text"}).text = str(message.sequence_number)
            ET.SubElement(entry, f"{ATOM}updated").text = _now()
            ET.SubElement(entry, f"{ATOM}BrokerProperties").text = self._message_headers(message)["BrokerProperties"]
            content = ET.SubElement(entry, f"{ATOM}content", {"type": message.content_type or "text/plain"})
            content.text = message.body.decode("utf-8")
            return _entry_response(entry)

        if segments[3:4] == ["rules"]:
            if len(segments) == 4 and method == "GET":
                entries = [
                    _entry(f"{sub_path}/rules/{r}", r, d)
                    for (t, s, r), d in self.rules.items() if (t, s) == key
                ]
                return _feed_response(request, "Rules", entries)
            if len(segments) == 5:
                rule_key = (topic, sub, segments[4])
                rule_path = f"{sub_path}/rules/{segments[4]}"
                if method == "PUT":
                    if rule_key in self.rules:
                        return _error(409, f"Rule '{segments[4]}' already exists")
                    description = self._description(body)
                    if description is None or description.tag != f"{SB}RuleDescription":
                        return _error(400, "Request body is not a RuleDescription entry")
                    self.rules[rule_key] = description
                    return _entry_response(_entry(rule_path, segments[4], description), 201)
                if rule_key not in self.rules:
                    return _error(404, f"Rule '{segments[4]}' could not be found.")
                if method == "GET":
                    return _entry_response(_entry(rule_path, segments[4], self.rules[rule_key]))
                if method == "DELETE":
                    del self.rules[rule_key]
                    return Response(status_code=200)

        return _error(404, f"No route for {method} {path}")


@pytest.fixture
def service():
    """Create an empty fake namespace."""
    return FakeServiceBus()


@pytest.fixture
def proxy(service):
    """Create a proxy talking HTTP to the fake namespace."""
    client = TestClient(service.app)
    transport = HttpxTransport(BASE_URI, client=client)
    with ServiceBusRestProxy(transport) as proxy:
        yield proxy
    client.close()
