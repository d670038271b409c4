"""
Service Bus Models

Pydantic models for Service Bus entity descriptions, brokered messages,
and request options.

Descriptions use the service's PascalCase element names as aliases and
declare their fields in the order the service's schema expects them.

Author: Ayodele Oladeji
Date: 2026-01-12
"""

from datetime import timedelta
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_pascal

from .constants import DEFAULT_RULE_NAME, QUERY_SKIP, QUERY_TOP
from .exceptions import ServiceBusDecodeError

# Alias of the polymorphic type attribute (i:type) on filters and actions
XSI_TYPE = "@i:type"


class ServiceBusModel(BaseModel):
    """Base for models exchanged with the service in PascalCase."""
    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra='ignore',
    )


# ========== Rule Filters and Actions ==========

class SqlFilter(ServiceBusModel):
    """Filter matching messages with a SQL-92 like expression."""
    filter_type: Literal["SqlFilter"] = Field(default="SqlFilter", alias=XSI_TYPE)
    sql_expression: Optional[str] = None
    compatibility_level: Optional[int] = None


class TrueFilter(ServiceBusModel):
    """Filter matching every message."""
    filter_type: Literal["TrueFilter"] = Field(default="TrueFilter", alias=XSI_TYPE)
    sql_expression: Optional[str] = "1=1"
    compatibility_level: Optional[int] = None


class FalseFilter(ServiceBusModel):
    """Filter matching no message."""
    filter_type: Literal["FalseFilter"] = Field(default="FalseFilter", alias=XSI_TYPE)
    sql_expression: Optional[str] = "1=0"
    compatibility_level: Optional[int] = None


class CorrelationFilter(ServiceBusModel):
    """Filter matching messages on system properties."""
    filter_type: Literal["CorrelationFilter"] = Field(default="CorrelationFilter", alias=XSI_TYPE)
    correlation_id: Optional[str] = None
    message_id: Optional[str] = None
    to: Optional[str] = None
    reply_to: Optional[str] = None
    label: Optional[str] = None
    session_id: Optional[str] = None
    reply_to_session_id: Optional[str] = None
    content_type: Optional[str] = None


class EmptyRuleAction(ServiceBusModel):
    """Action leaving matched messages unchanged."""
    action_type: Literal["EmptyRuleAction"] = Field(default="EmptyRuleAction", alias=XSI_TYPE)


class SqlRuleAction(ServiceBusModel):
    """Action modifying matched messages with a SQL-like expression."""
    action_type: Literal["SqlRuleAction"] = Field(default="SqlRuleAction", alias=XSI_TYPE)
    sql_expression: Optional[str] = None
    compatibility_level: Optional[int] = None


RuleFilter = Annotated[
    Union[SqlFilter, TrueFilter, FalseFilter, CorrelationFilter],
    Field(discriminator="filter_type"),
]

RuleAction = Annotated[
    Union[EmptyRuleAction, SqlRuleAction],
    Field(discriminator="action_type"),
]


# ========== Entity Descriptions ==========

class QueueDescription(ServiceBusModel):
    """Settings and runtime counters of a queue."""
    lock_duration: Optional[timedelta] = None
    max_size_in_megabytes: Optional[int] = None
    requires_duplicate_detection: Optional[bool] = None
    requires_session: Optional[bool] = None
    default_message_time_to_live: Optional[timedelta] = None
    dead_lettering_on_message_expiration: Optional[bool] = None
    duplicate_detection_history_time_window: Optional[timedelta] = None
    max_delivery_count: Optional[int] = None
    enable_batched_operations: Optional[bool] = None
    size_in_bytes: Optional[int] = None
    message_count: Optional[int] = None


class TopicDescription(ServiceBusModel):
    """Settings and runtime counters of a topic."""
    default_message_time_to_live: Optional[timedelta] = None
    max_size_in_megabytes: Optional[int] = None
    requires_duplicate_detection: Optional[bool] = None
    duplicate_detection_history_time_window: Optional[timedelta] = None
    enable_batched_operations: Optional[bool] = None
    size_in_bytes: Optional[int] = None


class SubscriptionDescription(ServiceBusModel):
    """Settings and runtime counters of a subscription."""
    lock_duration: Optional[timedelta] = None
    requires_session: Optional[bool] = None
    default_message_time_to_live: Optional[timedelta] = None
    dead_lettering_on_message_expiration: Optional[bool] = None
    dead_lettering_on_filter_evaluation_exceptions: Optional[bool] = None
    message_count: Optional[int] = None
    max_delivery_count: Optional[int] = None
    enable_batched_operations: Optional[bool] = None


class RuleDescription(ServiceBusModel):
    """Filter and action of a subscription rule."""
    filter: Optional[RuleFilter] = None
    action: Optional[RuleAction] = None


# ========== Entity Infos ==========

class _EntityInfo(BaseModel):
    """Name of an entity plus its description."""
    model_config = ConfigDict(extra='forbid')

    name: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate entity name is not empty."""
        if not v or not v.strip("/ "):
            raise ValueError("Entity name cannot be empty")
        return v


class QueueInfo(_EntityInfo):
    """A queue name with its description."""
    queue_description: QueueDescription = Field(default_factory=QueueDescription)


class TopicInfo(_EntityInfo):
    """A topic name with its description."""
    topic_description: TopicDescription = Field(default_factory=TopicDescription)


class SubscriptionInfo(_EntityInfo):
    """A subscription name with its description."""
    subscription_description: SubscriptionDescription = Field(default_factory=SubscriptionDescription)


class RuleInfo(_EntityInfo):
    """A rule name with its description."""
    name: str = DEFAULT_RULE_NAME
    rule_description: RuleDescription = Field(default_factory=RuleDescription)


# ========== Messages ==========

class BrokerProperties(ServiceBusModel):
    """
    Service-assigned message metadata.

    Travels as a JSON object in the BrokerProperties header. The lock
    location comes from the Location header of a peek-lock receive and is
    never sent back.
    """
    correlation_id: Optional[str] = None
    session_id: Optional[str] = None
    delivery_count: Optional[int] = None
    locked_until_utc: Optional[str] = None
    lock_token: Optional[str] = None
    message_id: Optional[str] = None
    label: Optional[str] = None
    reply_to: Optional[str] = None
    sequence_number: Optional[int] = None
    time_to_live: Optional[float] = None
    to: Optional[str] = None
    scheduled_enqueue_time_utc: Optional[str] = None
    reply_to_session_id: Optional[str] = None
    enqueued_time_utc: Optional[str] = None
    message_location: Optional[str] = None
    lock_location: Optional[str] = Field(default=None, exclude=True)

    @classmethod
    def create(cls, value: str) -> "BrokerProperties":
        """
        Parse a BrokerProperties header value.

        Raises:
            ServiceBusDecodeError: If the value is not a JSON object of properties
        """
        try:
            return cls.model_validate_json(value)
        except ValidationError as e:
            raise ServiceBusDecodeError(f"invalid BrokerProperties header: {e}") from e

    def to_string(self) -> str:
        """Serialize to the BrokerProperties header value."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class BrokeredMessage(BaseModel):
    """
    A message payload with its metadata.

    Custom properties travel as HTTP headers, so their values are strings.
    """
    model_config = ConfigDict(extra='forbid')

    body: bytes = b""
    content_type: Optional[str] = None
    date: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    broker_properties: Optional[BrokerProperties] = None

    @field_validator('body', mode='before')
    @classmethod
    def encode_body(cls, v: Any) -> Any:
        """Accept text bodies, stored UTF-8 encoded."""
        if isinstance(v, str):
            return v.encode('utf-8')
        return v

    @property
    def lock_location(self) -> Optional[str]:
        if self.broker_properties is None:
            return None
        return self.broker_properties.lock_location

    @property
    def lock_token(self) -> Optional[str]:
        if self.broker_properties is None:
            return None
        return self.broker_properties.lock_token

    @property
    def message_id(self) -> Optional[str]:
        if self.broker_properties is None:
            return None
        return self.broker_properties.message_id

    @property
    def sequence_number(self) -> Optional[int]:
        if self.broker_properties is None:
            return None
        return self.broker_properties.sequence_number

    def get_property(self, name: str) -> Optional[str]:
        return self.properties.get(name)

    def set_property(self, name: str, value: str) -> None:
        self.properties[name] = value


# ========== Options ==========

class ReceiveMode(str, Enum):
    """Message receive modes."""
    RECEIVE_AND_DELETE = "ReceiveAndDelete"
    PEEK_LOCK = "PeekLock"


class ReceiveMessageOptions(BaseModel):
    """
    Options of a receive: server-side wait and receive mode.

    The mode has no default; a receive must state whether it deletes the
    message or locks it.
    """
    model_config = ConfigDict(extra='forbid')

    timeout: Optional[int] = Field(default=None, ge=0)
    receive_mode: ReceiveMode

    @classmethod
    def peek_lock(cls, timeout: Optional[int] = None) -> "ReceiveMessageOptions":
        return cls(timeout=timeout, receive_mode=ReceiveMode.PEEK_LOCK)

    @classmethod
    def receive_and_delete(cls, timeout: Optional[int] = None) -> "ReceiveMessageOptions":
        return cls(timeout=timeout, receive_mode=ReceiveMode.RECEIVE_AND_DELETE)

    @property
    def is_peek_lock(self) -> bool:
        return self.receive_mode == ReceiveMode.PEEK_LOCK

    @property
    def is_receive_and_delete(self) -> bool:
        return self.receive_mode == ReceiveMode.RECEIVE_AND_DELETE


class ListOptions(BaseModel):
    """Paging options of a list operation."""
    model_config = ConfigDict(extra='forbid')

    skip: Optional[int] = Field(default=None, ge=0)
    top: Optional[int] = Field(default=None, ge=1)

    def to_query(self) -> Dict[str, str]:
        """Convert to query parameters."""
        query = {}
        if self.skip is not None:
            query[QUERY_SKIP] = str(self.skip)
        if self.top is not None:
            query[QUERY_TOP] = str(self.top)
        return query


class ListQueuesOptions(ListOptions):
    """Options of list queues."""


class ListTopicsOptions(ListOptions):
    """Options of list topics."""


class ListSubscriptionsOptions(ListOptions):
    """Options of list subscriptions."""


class ListRulesOptions(ListOptions):
    """Options of list rules."""
