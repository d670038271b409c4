"""
Service Bus XML Serialization

Converts entity descriptions to and from the service's XML representation
and wraps/unwraps them in Atom entry and feed envelopes.

Elements are built with their namespace declarations as literal
attributes (xmlns, xmlns:i) so that serialized descriptions keep the exact
declarations the service expects when nested in an Atom entry.

Author: Ayodele Oladeji
Date: 2026-01-14
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .constants import (
    ATOM_NAMESPACE,
    XML_DECLARATION,
    XML_MEDIA_TYPE,
    XML_SCHEMA_INSTANCE_NAMESPACE,
)
from .exceptions import ServiceBusDecodeError

ModelT = TypeVar("ModelT", bound=BaseModel)

XmlSource = Union[str, bytes, ET.Element]

_XSI_TYPE_TAG = f"{{{XML_SCHEMA_INSTANCE_NAMESPACE}}}type"
_XSI_NIL_TAG = f"{{{XML_SCHEMA_INSTANCE_NAMESPACE}}}nil"
_ATTRIBUTE_PREFIX = "@"


def _local_name(tag: str) -> str:
    """Strip the namespace from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1]


def _format_value(value: Any) -> str:
    """Format a JSON-mode value as XML text."""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def parse_xml(xml: XmlSource) -> ET.Element:
    """
    Parse XML text into an element.

    Raises:
        ServiceBusDecodeError: If the text is not well-formed XML
    """
    if isinstance(xml, ET.Element):
        return xml
    if not xml:
        raise ServiceBusDecodeError("empty XML document")
    try:
        return ET.fromstring(xml)
    except ET.ParseError as e:
        raise ServiceBusDecodeError(f"malformed XML: {e}") from e


class XmlSerializer:
    """Serializes pydantic models to service XML and back."""

    @classmethod
    def to_element(
        cls,
        obj: BaseModel,
        root_name: str,
        attributes: Optional[Dict[str, str]] = None
    ) -> ET.Element:
        """
        Build the XML element of a model.

        Fields are emitted as child elements named by their alias, in
        declaration order. Unset fields are omitted. Fields aliased with a
        leading '@' become attributes of their element.

        Args:
            obj: Model to serialize
            root_name: Name of the root element
            attributes: Extra attributes of the root element

        Returns:
            Root element
        """
        data = obj.model_dump(mode="json", by_alias=True, exclude_none=True)
        root = ET.Element(root_name, dict(attributes or {}))
        cls._fill(root, data)
        return root

    @classmethod
    def serialize(
        cls,
        obj: BaseModel,
        root_name: str,
        attributes: Optional[Dict[str, str]] = None
    ) -> str:
        """Serialize a model to an XML fragment string."""
        return ET.tostring(cls.to_element(obj, root_name, attributes), encoding="unicode")

    @classmethod
    def _fill(cls, element: ET.Element, data: Dict[str, Any]) -> None:
        for key, value in data.items():
            if key.startswith(_ATTRIBUTE_PREFIX):
                element.set(key[len(_ATTRIBUTE_PREFIX):], _format_value(value))
            elif isinstance(value, dict):
                cls._fill(ET.SubElement(element, key), value)
            elif isinstance(value, list):
                for item in value:
                    child = ET.SubElement(element, key)
                    if isinstance(item, dict):
                        cls._fill(child, item)
                    else:
                        child.text = _format_value(item)
            else:
                ET.SubElement(element, key).text = _format_value(value)

    @classmethod
    def to_dict(cls, element: ET.Element) -> Dict[str, Any]:
        """
        Convert an element's children to a dictionary keyed by local name.

        Leaf elements map to their text; elements with children or an
        i:type attribute map to nested dictionaries. Nil and empty leaves
        are skipped.
        """
        data: Dict[str, Any] = {}
        xsi_type = element.get(_XSI_TYPE_TAG)
        if xsi_type is not None:
            data[f"{_ATTRIBUTE_PREFIX}i:type"] = _local_name(xsi_type.split(":")[-1])
        for child in element:
            if child.get(_XSI_NIL_TAG) == "true":
                continue
            name = _local_name(child.tag)
            if len(child) or child.get(_XSI_TYPE_TAG) is not None:
                data[name] = cls.to_dict(child)
            elif child.text is not None:
                data[name] = child.text
        return data

    @classmethod
    def deserialize(cls, xml: XmlSource, model: Type[ModelT]) -> ModelT:
        """
        Deserialize XML into a model.

        Args:
            xml: XML text or an already parsed element
            model: Model class to build

        Returns:
            Model instance

        Raises:
            ServiceBusDecodeError: If the XML is malformed or does not fit the model
        """
        element = parse_xml(xml)
        try:
            return model.model_validate(cls.to_dict(element))
        except ValidationError as e:
            raise ServiceBusDecodeError(
                f"{_local_name(element.tag)} does not match {model.__name__}: {e}"
            ) from e


# ========== Atom Envelopes ==========

@dataclass
class Content:
    """Atom content element: either a nested XML element or plain text."""
    element: Optional[ET.Element] = None
    text: Optional[str] = None
    type: str = XML_MEDIA_TYPE

    def to_element(self) -> ET.Element:
        content = ET.Element("content", {"type": self.type})
        if self.element is not None:
            content.append(self.element)
        elif self.text is not None:
            content.text = self.text
        return content

    @classmethod
    def from_element(cls, element: ET.Element) -> "Content":
        children = list(element)
        return cls(
            element=children[0] if children else None,
            text=element.text.strip() if element.text and element.text.strip() else None,
            type=element.get("type", XML_MEDIA_TYPE),
        )


@dataclass
class Entry:
    """Atom entry envelope."""
    content: Optional[Content] = None
    title: Optional[str] = None
    id: Optional[str] = None
    updated: Optional[str] = None
    extensions: Dict[str, str] = field(default_factory=dict)

    def to_element(self) -> ET.Element:
        entry = ET.Element("entry", {"xmlns": ATOM_NAMESPACE})
        if self.id is not None:
            ET.SubElement(entry, "id").text = self.id
        if self.title is not None:
            ET.SubElement(entry, "title", {"type": "text"}).text = self.title
        if self.updated is not None:
            ET.SubElement(entry, "updated").text = self.updated
        for name, value in self.extensions.items():
            ET.SubElement(entry, name).text = value
        if self.content is not None:
            entry.append(self.content.to_element())
        return entry

    def to_xml(self) -> str:
        """Serialize to an Atom entry document."""
        return XML_DECLARATION + ET.tostring(self.to_element(), encoding="unicode")

    @classmethod
    def from_element(cls, element: ET.Element) -> "Entry":
        if _local_name(element.tag) != "entry":
            raise ServiceBusDecodeError(
                f"expected an Atom entry, got <{_local_name(element.tag)}>"
            )
        entry = cls()
        for child in element:
            name = _local_name(child.tag)
            if name == "content":
                entry.content = Content.from_element(child)
            elif name == "title":
                entry.title = child.text
            elif name == "id":
                entry.id = child.text
            elif name == "updated":
                entry.updated = child.text
            elif len(child) == 0 and child.text is not None:
                entry.extensions[name] = child.text
        return entry

    @classmethod
    def create(cls, xml: XmlSource) -> "Entry":
        """
        Parse an Atom entry document.

        Raises:
            ServiceBusDecodeError: If the document is not an Atom entry
        """
        return cls.from_element(parse_xml(xml))

    def description(self, model: Type[ModelT]) -> ModelT:
        """
        Deserialize the description held in the entry's content.

        Raises:
            ServiceBusDecodeError: If the entry has no XML content
        """
        if self.content is None or self.content.element is None:
            raise ServiceBusDecodeError(
                f"entry '{self.title}' has no {model.__name__} content"
            )
        return XmlSerializer.deserialize(self.content.element, model)


@dataclass
class Feed:
    """Atom feed envelope."""
    entries: List[Entry] = field(default_factory=list)
    title: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def create(cls, xml: XmlSource) -> "Feed":
        """
        Parse an Atom feed document.

        Raises:
            ServiceBusDecodeError: If the document is not an Atom feed
        """
        root = parse_xml(xml)
        if _local_name(root.tag) != "feed":
            raise ServiceBusDecodeError(
                f"expected an Atom feed, got <{_local_name(root.tag)}>"
            )
        feed = cls()
        for child in root:
            name = _local_name(child.tag)
            if name == "entry":
                feed.entries.append(Entry.from_element(child))
            elif name == "title":
                feed.title = child.text
            elif name == "id":
                feed.id = child.text
        return feed


def wrap_entry(
    obj: BaseModel,
    root_name: str,
    title: Optional[str] = None,
    attributes: Optional[Dict[str, str]] = None
) -> str:
    """
    Serialize a description and wrap it in an Atom entry document.

    Args:
        obj: Description to serialize
        root_name: Root element name of the description
        title: Entry title, the entity name
        attributes: Namespace attributes of the description element

    Returns:
        Atom entry XML
    """
    content = Content(element=XmlSerializer.to_element(obj, root_name, attributes))
    return Entry(content=content, title=title).to_xml()
