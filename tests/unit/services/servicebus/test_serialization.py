"""
Unit Tests for Service Bus XML Serialization

Tests for description serialization and Atom entry/feed envelopes.

Author: Ayodele Oladeji
Date: 2026-01-20
"""

import xml.etree.ElementTree as ET
from datetime import timedelta

import pytest

from sbrest.services.servicebus.constants import (
    ATOM_NAMESPACE,
    DESCRIPTION_ATTRIBUTES,
    SERVICEBUS_NAMESPACE,
)
from sbrest.services.servicebus.exceptions import ServiceBusDecodeError
from sbrest.services.servicebus.models import (
    QueueDescription,
    RuleDescription,
    TrueFilter,
)
from sbrest.services.servicebus.serialization import (
    Content,
    Entry,
    Feed,
    XmlSerializer,
    parse_xml,
    wrap_entry,
)

SB = f"{{{SERVICEBUS_NAMESPACE}}}"

QUEUE_ENTRY = f"""<?xml version="1.0" encoding="utf-8"?>
<entry xmlns="{ATOM_NAMESPACE}">
  <id>https://myns.servicebus.windows.net/orders</id>
  <title type="text">orders</title>
  <updated>2026-01-20T10:00:00Z</updated>
  <content type="application/xml">
    <QueueDescription xmlns="{SERVICEBUS_NAMESPACE}" xmlns:i="http://www.w3.org/2001/XMLSchema-instance">
      <LockDuration>PT1M</LockDuration>
      <MaxSizeInMegabytes>1024</MaxSizeInMegabytes>
      <RequiresDuplicateDetection>false</RequiresDuplicateDetection>
      <RequiresSession>true</RequiresSession>
      <DefaultMessageTimeToLive i:nil="true"/>
      <MaxDeliveryCount>10</MaxDeliveryCount>
      <AuthorizationRules/>
      <MessageCount>0</MessageCount>
    </QueueDescription>
  </content>
</entry>"""


class TestXmlSerializer:
    """Tests for description serialization."""

    def test_fields_in_declaration_order(self):
        """Test set fields become child elements in declaration order."""
        element = XmlSerializer.to_element(
            QueueDescription(max_delivery_count=3, lock_duration=timedelta(minutes=1)),
            "QueueDescription",
        )

        assert element.tag == "QueueDescription"
        assert [child.tag for child in element] == ["LockDuration", "MaxDeliveryCount"]
        assert element.find("MaxDeliveryCount").text == "3"

    def test_booleans_lowercase(self):
        """Test booleans are written the way the service spells them."""
        element = XmlSerializer.to_element(
            QueueDescription(requires_session=True, enable_batched_operations=False),
            "QueueDescription",
        )

        assert element.find("RequiresSession").text == "true"
        assert element.find("EnableBatchedOperations").text == "false"

    def test_serialize_with_namespace_attributes(self):
        """Test namespace declarations are written on the root."""
        xml = XmlSerializer.serialize(QueueDescription(), "QueueDescription", DESCRIPTION_ATTRIBUTES)

        assert xml.startswith("<QueueDescription ")
        assert f'xmlns="{SERVICEBUS_NAMESPACE}"' in xml
        assert 'xmlns:i="http://www.w3.org/2001/XMLSchema-instance"' in xml

    def test_type_alias_written_as_attribute(self):
        """Test the filter type is written as an i:type attribute."""
        xml = XmlSerializer.serialize(
            RuleDescription(filter=TrueFilter()), "RuleDescription", DESCRIPTION_ATTRIBUTES
        )
        root = ET.fromstring(xml)
        rule_filter = root.find(f"{SB}Filter")

        assert rule_filter.get("{http://www.w3.org/2001/XMLSchema-instance}type") == "TrueFilter"
        assert rule_filter.find(f"{SB}SqlExpression").text == "1=1"

    def test_deserialize_skips_nil_and_unknown(self):
        """Test nil elements and unknown elements are ignored."""
        content = Entry.create(QUEUE_ENTRY).content.element
        description = XmlSerializer.deserialize(content, QueueDescription)

        assert description.lock_duration == timedelta(minutes=1)
        assert description.max_size_in_megabytes == 1024
        assert description.requires_duplicate_detection is False
        assert description.requires_session is True
        assert description.default_message_time_to_live is None
        assert description.message_count == 0

    def test_deserialize_filter_type(self):
        """Test the i:type attribute selects the filter on the way back."""
        xml = XmlSerializer.serialize(
            RuleDescription(filter=TrueFilter()), "RuleDescription", DESCRIPTION_ATTRIBUTES
        )

        description = XmlSerializer.deserialize(xml, RuleDescription)

        assert isinstance(description.filter, TrueFilter)

    def test_deserialize_mismatch(self):
        """Test values that do not fit the model raise a decode error."""
        xml = f'<QueueDescription xmlns="{SERVICEBUS_NAMESPACE}"><MaxDeliveryCount>many</MaxDeliveryCount></QueueDescription>'

        with pytest.raises(ServiceBusDecodeError):
            XmlSerializer.deserialize(xml, QueueDescription)


class TestParseXml:
    """Tests for XML parsing."""

    @pytest.mark.parametrize("xml", [b"", "", "<unclosed>", b"\x00\x01"])
    def test_invalid_xml(self, xml):
        """Test empty and malformed documents raise a decode error."""
        with pytest.raises(ServiceBusDecodeError):
            parse_xml(xml)

    def test_element_passthrough(self):
        """Test an element is returned as-is."""
        element = ET.Element("a")

        assert parse_xml(element) is element


class TestEntry:
    """Tests for Atom entries."""

    def test_create(self):
        """Test parsing the envelope fields."""
        entry = Entry.create(QUEUE_ENTRY)

        assert entry.id == "https://myns.servicebus.windows.net/orders"
        assert entry.title == "orders"
        assert entry.updated == "2026-01-20T10:00:00Z"
        assert entry.content.type == "application/xml"
        assert entry.content.element.tag == f"{SB}QueueDescription"

    def test_description(self):
        """Test reading the description held in the content."""
        description = Entry.create(QUEUE_ENTRY).description(QueueDescription)

        assert description.max_delivery_count == 10

    def test_description_without_content(self):
        """Test an entry without XML content has no description."""
        entry = Entry(title="orders", content=Content(text="plain", type="text/plain"))

        with pytest.raises(ServiceBusDecodeError):
            entry.description(QueueDescription)

    def test_not_an_entry(self):
        """Test other root elements are rejected."""
        with pytest.raises(ServiceBusDecodeError):
            Entry.create(f'<feed xmlns="{ATOM_NAMESPACE}"/>')

    def test_to_xml(self):
        """Test the entry document layout."""
        xml = Entry(
            title="orders",
            content=Content(text="payload", type="text/plain"),
            extensions={"BrokerProperties": '{"Label":"x"}'},
        ).to_xml()

        assert xml.startswith('<?xml version="1.0" encoding="utf-8"?>')
        parsed = Entry.create(xml)
        assert parsed.title == "orders"
        assert parsed.content.text == "payload"
        assert parsed.content.type == "text/plain"
        assert parsed.extensions == {"BrokerProperties": '{"Label":"x"}'}

    def test_wrap_entry_keeps_namespaces(self):
        """Test a wrapped description keeps its own namespace."""
        xml = wrap_entry(
            QueueDescription(max_delivery_count=2),
            "QueueDescription",
            title="orders",
            attributes=DESCRIPTION_ATTRIBUTES,
        )
        root = ET.fromstring(xml)

        contents = root.findall(f"{{{ATOM_NAMESPACE}}}content")
        assert len(contents) == 1
        assert contents[0].get("type") == "application/xml"
        assert contents[0].find(f"{SB}QueueDescription/{SB}MaxDeliveryCount").text == "2"


class TestFeed:
    """Tests for Atom feeds."""

    def test_create(self):
        """Test entries are read in order."""
        entries = QUEUE_ENTRY.split("?>", 1)[1]
        feed = Feed.create(
            f'<feed xmlns="{ATOM_NAMESPACE}"><title type="text">Queues</title>'
            f'<id>https://myns.servicebus.windows.net/$Resources/Queues</id>{entries}{entries}</feed>'
        )

        assert feed.title == "Queues"
        assert feed.id.endswith("$Resources/Queues")
        assert [e.title for e in feed.entries] == ["orders", "orders"]

    def test_empty_feed(self):
        """Test a feed without entries."""
        assert Feed.create(f'<feed xmlns="{ATOM_NAMESPACE}"/>').entries == []

    def test_not_a_feed(self):
        """Test an entry is not a feed."""
        with pytest.raises(ServiceBusDecodeError):
            Feed.create(QUEUE_ENTRY)
