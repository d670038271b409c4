"""
Service Bus REST client

Author: Ayodele Oladeji
Date: 2026-01-16
"""

from .exceptions import (
    ServiceBusError,
    InvalidArgumentError,
    InvalidOperationError,
    ServiceBusConnectionError,
    OperationTimeoutError,
    ServiceBusHttpError,
    UnauthorizedError,
    InternalServerError,
    QuotaExceededError,
    EntityNotFoundError,
    EntityAlreadyExistsError,
    MessageLockLostError,
    ServerBusyError,
    ServiceBusDecodeError,
    is_transient_error,
)
from .models import (
    BrokeredMessage,
    BrokerProperties,
    CorrelationFilter,
    EmptyRuleAction,
    FalseFilter,
    ListQueuesOptions,
    ListRulesOptions,
    ListSubscriptionsOptions,
    ListTopicsOptions,
    QueueDescription,
    QueueInfo,
    ReceiveMessageOptions,
    ReceiveMode,
    RuleDescription,
    RuleInfo,
    SqlFilter,
    SqlRuleAction,
    SubscriptionDescription,
    SubscriptionInfo,
    TopicDescription,
    TopicInfo,
    TrueFilter,
)
from .results import (
    CreateQueueResult,
    CreateRuleResult,
    CreateSubscriptionResult,
    CreateTopicResult,
    GetQueueResult,
    GetRuleResult,
    GetSubscriptionResult,
    GetTopicResult,
    ListQueuesResult,
    ListRulesResult,
    ListSubscriptionsResult,
    ListTopicsResult,
    ReceiveSubscriptionMessageResult,
)
from .transport import HttpCallContext, HttpResponse, HttpxTransport, Transport
from .proxy import ServiceBusRestProxy

__all__ = [
    "ServiceBusRestProxy",
    "Transport",
    "HttpxTransport",
    "HttpCallContext",
    "HttpResponse",
    "ServiceBusError",
    "InvalidArgumentError",
    "InvalidOperationError",
    "ServiceBusConnectionError",
    "OperationTimeoutError",
    "ServiceBusHttpError",
    "UnauthorizedError",
    "InternalServerError",
    "QuotaExceededError",
    "EntityNotFoundError",
    "EntityAlreadyExistsError",
    "MessageLockLostError",
    "ServerBusyError",
    "ServiceBusDecodeError",
    "is_transient_error",
    "BrokeredMessage",
    "BrokerProperties",
    "ReceiveMessageOptions",
    "ReceiveMode",
    "QueueDescription",
    "QueueInfo",
    "TopicDescription",
    "TopicInfo",
    "SubscriptionDescription",
    "SubscriptionInfo",
    "RuleDescription",
    "RuleInfo",
    "SqlFilter",
    "TrueFilter",
    "FalseFilter",
    "CorrelationFilter",
    "SqlRuleAction",
    "EmptyRuleAction",
    "ListQueuesOptions",
    "ListTopicsOptions",
    "ListSubscriptionsOptions",
    "ListRulesOptions",
    "CreateQueueResult",
    "GetQueueResult",
    "ListQueuesResult",
    "CreateTopicResult",
    "GetTopicResult",
    "ListTopicsResult",
    "CreateSubscriptionResult",
    "GetSubscriptionResult",
    "ListSubscriptionsResult",
    "CreateRuleResult",
    "GetRuleResult",
    "ListRulesResult",
    "ReceiveSubscriptionMessageResult",
]
