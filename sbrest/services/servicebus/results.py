"""
Service Bus Result Models

Immutable wrappers around decoded response bodies. Each result is built
with its create() factory from the raw body returned by the service.

Author: Ayodele Oladeji
Date: 2026-01-14
"""

import xml.etree.ElementTree as ET
from typing import List

from pydantic import BaseModel, ConfigDict

from .exceptions import ServiceBusDecodeError
from .models import (
    BrokeredMessage,
    BrokerProperties,
    QueueDescription,
    QueueInfo,
    RuleDescription,
    RuleInfo,
    SubscriptionDescription,
    SubscriptionInfo,
    TopicDescription,
    TopicInfo,
)
from .serialization import Entry, Feed, XmlSource


class ServiceBusResult(BaseModel):
    """Base for operation results."""
    model_config = ConfigDict(frozen=True, extra='forbid')


def _entry_name(entry: Entry) -> str:
    if not entry.title:
        raise ServiceBusDecodeError("entry has no title")
    return entry.title


def _queue_info(entry: Entry) -> QueueInfo:
    return QueueInfo(
        name=_entry_name(entry),
        queue_description=entry.description(QueueDescription),
    )


def _topic_info(entry: Entry) -> TopicInfo:
    return TopicInfo(
        name=_entry_name(entry),
        topic_description=entry.description(TopicDescription),
    )


def _subscription_info(entry: Entry) -> SubscriptionInfo:
    return SubscriptionInfo(
        name=_entry_name(entry),
        subscription_description=entry.description(SubscriptionDescription),
    )


def _rule_info(entry: Entry) -> RuleInfo:
    return RuleInfo(
        name=_entry_name(entry),
        rule_description=entry.description(RuleDescription),
    )


# ========== Queues ==========

class CreateQueueResult(ServiceBusResult):
    queue_info: QueueInfo

    @classmethod
    def create(cls, body: XmlSource) -> "CreateQueueResult":
        return cls(queue_info=_queue_info(Entry.create(body)))


class GetQueueResult(ServiceBusResult):
    queue_info: QueueInfo

    @classmethod
    def create(cls, body: XmlSource) -> "GetQueueResult":
        return cls(queue_info=_queue_info(Entry.create(body)))


class ListQueuesResult(ServiceBusResult):
    queue_infos: List[QueueInfo]

    @classmethod
    def create(cls, body: XmlSource) -> "ListQueuesResult":
        return cls(queue_infos=[_queue_info(e) for e in Feed.create(body).entries])


# ========== Topics ==========

class CreateTopicResult(ServiceBusResult):
    topic_info: TopicInfo

    @classmethod
    def create(cls, body: XmlSource) -> "CreateTopicResult":
        return cls(topic_info=_topic_info(Entry.create(body)))


class GetTopicResult(ServiceBusResult):
    topic_info: TopicInfo

    @classmethod
    def create(cls, body: XmlSource) -> "GetTopicResult":
        return cls(topic_info=_topic_info(Entry.create(body)))


class ListTopicsResult(ServiceBusResult):
    topic_infos: List[TopicInfo]

    @classmethod
    def create(cls, body: XmlSource) -> "ListTopicsResult":
        return cls(topic_infos=[_topic_info(e) for e in Feed.create(body).entries])


# ========== Subscriptions ==========

class CreateSubscriptionResult(ServiceBusResult):
    subscription_info: SubscriptionInfo

    @classmethod
    def create(cls, body: XmlSource) -> "CreateSubscriptionResult":
        return cls(subscription_info=_subscription_info(Entry.create(body)))


class GetSubscriptionResult(ServiceBusResult):
    subscription_info: SubscriptionInfo

    @classmethod
    def create(cls, body: XmlSource) -> "GetSubscriptionResult":
        return cls(subscription_info=_subscription_info(Entry.create(body)))


class ListSubscriptionsResult(ServiceBusResult):
    subscription_infos: List[SubscriptionInfo]

    @classmethod
    def create(cls, body: XmlSource) -> "ListSubscriptionsResult":
        return cls(
            subscription_infos=[_subscription_info(e) for e in Feed.create(body).entries]
        )


# ========== Rules ==========

class CreateRuleResult(ServiceBusResult):
    rule_info: RuleInfo

    @classmethod
    def create(cls, body: XmlSource) -> "CreateRuleResult":
        return cls(rule_info=_rule_info(Entry.create(body)))


class GetRuleResult(ServiceBusResult):
    rule_info: RuleInfo

    @classmethod
    def create(cls, body: XmlSource) -> "GetRuleResult":
        return cls(rule_info=_rule_info(Entry.create(body)))


class ListRulesResult(ServiceBusResult):
    rule_infos: List[RuleInfo]

    @classmethod
    def create(cls, body: XmlSource) -> "ListRulesResult":
        return cls(rule_infos=[_rule_info(e) for e in Feed.create(body).entries])


# ========== Messages ==========

class ReceiveSubscriptionMessageResult(ServiceBusResult):
    """
    Message read from a subscription, decoded from a self-describing Atom entry.

    The entry content carries the payload (nested XML or text) and its type;
    an optional BrokerProperties extension element carries the metadata as
    the same JSON object used in the BrokerProperties header.
    """
    brokered_message: BrokeredMessage

    @classmethod
    def create(cls, body: XmlSource) -> "ReceiveSubscriptionMessageResult":
        entry = Entry.create(body)
        if entry.content is None:
            raise ServiceBusDecodeError("subscription message entry has no content")

        broker_json = entry.extensions.get("BrokerProperties")
        if broker_json:
            broker_properties = BrokerProperties.create(broker_json)
        else:
            broker_properties = BrokerProperties()

        content = entry.content
        if content.element is not None:
            payload = ET.tostring(content.element, encoding="utf-8")
        else:
            payload = (content.text or "").encode("utf-8")

        return cls(
            brokered_message=BrokeredMessage(
                body=payload,
                content_type=content.type,
                date=entry.updated,
                broker_properties=broker_properties,
            )
        )
