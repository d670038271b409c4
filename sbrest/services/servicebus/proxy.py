"""
Service Bus REST Proxy

Maps each Service Bus operation (messages, queues, topics, subscriptions,
rules) to one HTTP request through an injected transport, and decodes the
response into a result object.

Every operation issues exactly one request. Argument and state checks run
before the request; a status code outside the operation's accepted set
raises and no result is decoded.

Author: Ayodele Oladeji
Date: 2026-01-16
"""

from typing import Any, Dict, Optional

import httpx

from sbrest.core.config_manager import ConfigManager, ServiceBusConfig
from sbrest.core.logging_config import setup_logging_from_config

from .constants import (
    ATOM_ENTRY_CONTENT_TYPE,
    BROKER_PROPERTIES,
    CONTENT_TYPE,
    DESCRIPTION_ATTRIBUTES,
    ERROR_NO_LOCK_LOCATION,
    ERROR_UNKNOWN_RECEIVE_MODE,
    HTTP_DELETE,
    HTTP_GET,
    HTTP_POST,
    HTTP_PUT,
    LIST_QUEUES_PATH,
    LIST_RULES_PATH,
    LIST_SUBSCRIPTIONS_PATH,
    LIST_TOPICS_PATH,
    QUERY_TIMEOUT,
    QUEUE_DESCRIPTION,
    QUEUE_MESSAGE_PATH,
    RULE_DESCRIPTION,
    RULE_PATH,
    SEND_MESSAGE_PATH,
    STATUS_CREATED,
    STATUS_NO_CONTENT,
    STATUS_OK,
    SUBSCRIPTION_DESCRIPTION,
    SUBSCRIPTION_MESSAGE_PATH,
    SUBSCRIPTION_PATH,
    TOPIC_DESCRIPTION,
    WELL_KNOWN_HEADERS,
)
from .exceptions import InvalidArgumentError, InvalidOperationError, error_for_status
from .logging_utils import StructuredLogger, track_operation_time
from .models import (
    BrokeredMessage,
    BrokerProperties,
    ListOptions,
    QueueInfo,
    ReceiveMessageOptions,
    ReceiveMode,
    RuleInfo,
    SubscriptionInfo,
    TopicInfo,
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
from .serialization import wrap_entry
from .transport import HttpCallContext, HttpResponse, HttpxTransport, Transport
from .validation import validate_instance, validate_path

logger = StructuredLogger('sbrest.services.servicebus.proxy')


class ServiceBusRestProxy:
    """
    Constructs HTTP requests and decodes HTTP responses for Service Bus.

    The proxy holds only its transport; it keeps no state between calls and
    can be shared by concurrent callers as far as the transport allows.
    """

    def __init__(self, transport: Transport):
        """
        Create a proxy.

        Args:
            transport: Transport executing the requests
        """
        if transport is None:
            raise InvalidArgumentError("transport", "must not be None")
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: ServiceBusConfig,
        client: Optional[httpx.Client] = None,
        auth: Optional[httpx.Auth] = None,
    ) -> "ServiceBusRestProxy":
        """
        Create a proxy over an HttpxTransport built from configuration.

        Args:
            config: ServiceBusConfig with endpoint, timeout and headers
            client: Optional pre-configured httpx client
            auth: Optional httpx authentication flow signing requests

        Returns:
            ServiceBusRestProxy
        """
        transport = HttpxTransport(
            config.endpoint,
            client=client,
            timeout=config.timeout,
            auth=auth,
            headers=config.headers,
            verify=config.verify_ssl,
        )
        return cls(transport)

    @classmethod
    def from_config_file(
        cls,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        client: Optional[httpx.Client] = None,
        auth: Optional[httpx.Auth] = None,
    ) -> "ServiceBusRestProxy":
        """
        Load configuration, set up logging from it, and create a proxy.

        Args:
            config_file: Optional YAML or JSON configuration file
            overrides: Explicit setting overrides
            client: Optional pre-configured httpx client
            auth: Optional httpx authentication flow signing requests

        Returns:
            ServiceBusRestProxy
        """
        config = ConfigManager().load(config_file=config_file, overrides=overrides)
        setup_logging_from_config(config.logging)
        logger.info(f"Service Bus proxy configured for {config.endpoint}", endpoint=config.endpoint)
        return cls.from_config(config, client=client, auth=auth)

    @property
    def transport(self) -> Transport:
        return self._transport

    def close(self) -> None:
        """Close the underlying transport."""
        self._transport.close()

    def __enter__(self) -> "ServiceBusRestProxy":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _send_context(self, context: HttpCallContext) -> HttpResponse:
        """
        Send a request and check its status code.

        Raises:
            ServiceBusHttpError: If the status code is not accepted
        """
        logger.log_request(context.method, context.path)
        response = self._transport.execute(
            context.method,
            context.path,
            context.headers,
            context.query_parameters,
            context.body,
        )
        logger.log_response(
            context.method,
            context.path,
            response.status_code,
            accepted=response.status_code in context.status_codes,
        )

        if response.status_code not in context.status_codes:
            raise error_for_status(
                response.status_code,
                context.status_codes,
                context.method,
                context.path,
                response.body,
            )
        return response

    # ========== Messages ==========

    @track_operation_time(logger, "send_message")
    def send_message(self, path: str, message: BrokeredMessage) -> None:
        """
        Send a brokered message.

        Args:
            path: Path of the send endpoint
            message: Message to send
        """
        path = validate_path(path, "path")
        validate_instance(message, BrokeredMessage, "message")

        context = HttpCallContext(method=HTTP_POST, path=path)
        context.add_status_code(STATUS_OK)

        for name, value in message.properties.items():
            context.add_header(name, value)
        if message.content_type is not None:
            context.add_header(CONTENT_TYPE, message.content_type)
        if message.broker_properties is not None:
            context.add_header(BROKER_PROPERTIES, message.broker_properties.to_string())

        context.set_body(message.body)
        self._send_context(context)

    def send_queue_message(self, queue_path: str, message: BrokeredMessage) -> None:
        """Send a message to a queue."""
        queue_path = validate_path(queue_path, "queue_path")
        self.send_message(SEND_MESSAGE_PATH.format(path=queue_path), message)

    def send_topic_message(self, topic_path: str, message: BrokeredMessage) -> None:
        """Send a message to a topic."""
        topic_path = validate_path(topic_path, "topic_path")
        self.send_message(SEND_MESSAGE_PATH.format(path=topic_path), message)

    @track_operation_time(logger, "receive_message")
    def receive_message(
        self,
        path: str,
        options: ReceiveMessageOptions,
    ) -> Optional[BrokeredMessage]:
        """
        Receive a message.

        ReceiveAndDelete mode issues a DELETE, PeekLock mode a POST. A
        message received with PeekLock carries the lock location needed by
        unlock_message() and delete_message().

        Args:
            path: Path of the message head
            options: Timeout and receive mode

        Returns:
            BrokeredMessage, or None when no message arrived before the timeout

        Raises:
            InvalidArgumentError: If options or their receive mode are invalid
        """
        path = validate_path(path, "path")
        validate_instance(options, ReceiveMessageOptions, "options")

        receive_mode = getattr(options, "receive_mode", None)
        context = HttpCallContext(path=path)
        if receive_mode == ReceiveMode.RECEIVE_AND_DELETE:
            context.method = HTTP_DELETE
        elif receive_mode == ReceiveMode.PEEK_LOCK:
            context.method = HTTP_POST
        else:
            raise InvalidArgumentError("options", ERROR_UNKNOWN_RECEIVE_MODE)

        if options.timeout is not None:
            context.add_query_parameter(QUERY_TIMEOUT, options.timeout)
        context.add_status_code(STATUS_OK)
        context.add_status_code(STATUS_CREATED)
        context.add_status_code(STATUS_NO_CONTENT)

        response = self._send_context(context)
        if response.status_code == STATUS_NO_CONTENT:
            return None
        return self._brokered_message_from_response(response)

    @staticmethod
    def _brokered_message_from_response(response: HttpResponse) -> BrokeredMessage:
        """Rebuild a message from response headers and body."""
        if response.broker_properties is not None:
            broker_properties = BrokerProperties.create(response.broker_properties)
        else:
            broker_properties = BrokerProperties()

        if response.location is not None:
            broker_properties.lock_location = response.location

        # Raw headers keep the names as the service sent them
        properties = {}
        for raw_name, raw_value in response.headers.raw:
            name = raw_name.decode("latin-1")
            if name.lower() not in WELL_KNOWN_HEADERS:
                properties[name] = raw_value.decode("latin-1")

        return BrokeredMessage(
            body=response.body,
            content_type=response.content_type,
            date=response.date,
            properties=properties,
            broker_properties=broker_properties,
        )

    def receive_queue_message(
        self,
        queue_path: str,
        options: ReceiveMessageOptions,
    ) -> Optional[BrokeredMessage]:
        """
        Receive a message from a queue.

        Returns:
            BrokeredMessage, or None when no message arrived before the timeout
        """
        queue_path = validate_path(queue_path, "queue_path")
        return self.receive_message(QUEUE_MESSAGE_PATH.format(queue=queue_path), options)

    @track_operation_time(logger, "receive_subscription_message")
    def receive_subscription_message(
        self,
        topic_name: str,
        subscription_name: str,
        options: Optional[ReceiveMessageOptions] = None,
    ) -> ReceiveSubscriptionMessageResult:
        """
        Read the head message of a subscription.

        The response body is a self-describing Atom entry; response headers
        are not used.

        Args:
            topic_name: Name of the topic
            subscription_name: Name of the subscription
            options: Optional timeout

        Returns:
            ReceiveSubscriptionMessageResult
        """
        topic_name = validate_path(topic_name, "topic_name")
        subscription_name = validate_path(subscription_name, "subscription_name")
        if options is not None:
            validate_instance(options, ReceiveMessageOptions, "options")

        context = HttpCallContext(
            method=HTTP_GET,
            path=SUBSCRIPTION_MESSAGE_PATH.format(
                topic=topic_name, subscription=subscription_name
            ),
        )
        if options is not None and options.timeout is not None:
            context.add_query_parameter(QUERY_TIMEOUT, options.timeout)
        context.add_status_code(STATUS_OK)

        response = self._send_context(context)
        return ReceiveSubscriptionMessageResult.create(response.body)

    def _lock_location(self, message: BrokeredMessage, operation: str) -> str:
        validate_instance(message, BrokeredMessage, "message")
        lock_location = message.lock_location
        if not lock_location:
            raise InvalidOperationError(operation, ERROR_NO_LOCK_LOCATION)
        return lock_location

    @track_operation_time(logger, "unlock_message")
    def unlock_message(self, message: BrokeredMessage) -> None:
        """
        Release the lock of a peek-locked message.

        Raises:
            InvalidOperationError: If the message has no lock location
        """
        context = HttpCallContext(
            method=HTTP_PUT,
            path=self._lock_location(message, "unlock_message"),
        )
        context.add_status_code(STATUS_OK)
        self._send_context(context)

    @track_operation_time(logger, "delete_message")
    def delete_message(self, message: BrokeredMessage) -> None:
        """
        Delete a peek-locked message.

        Raises:
            InvalidOperationError: If the message has no lock location
        """
        context = HttpCallContext(
            method=HTTP_DELETE,
            path=self._lock_location(message, "delete_message"),
        )
        context.add_status_code(STATUS_OK)
        self._send_context(context)

    # ========== Shared entity operations ==========

    def _create_entity(
        self,
        path: str,
        name: str,
        description,
        root_name: str,
    ) -> HttpResponse:
        context = HttpCallContext(method=HTTP_PUT, path=path)
        context.add_status_code(STATUS_CREATED)
        context.add_header(CONTENT_TYPE, ATOM_ENTRY_CONTENT_TYPE)
        context.set_body(
            wrap_entry(description, root_name, title=name, attributes=DESCRIPTION_ATTRIBUTES)
        )
        return self._send_context(context)

    def _delete_entity(self, path: str) -> None:
        context = HttpCallContext(method=HTTP_DELETE, path=path)
        context.add_status_code(STATUS_OK)
        self._send_context(context)

    def _get_entity(self, path: str, options: Optional[ListOptions] = None) -> HttpResponse:
        context = HttpCallContext(method=HTTP_GET, path=path)
        context.add_status_code(STATUS_OK)
        if options is not None:
            validate_instance(options, ListOptions, "options")
            for name, value in options.to_query().items():
                context.add_query_parameter(name, value)
        return self._send_context(context)

    # ========== Queues ==========

    @track_operation_time(logger, "create_queue")
    def create_queue(self, queue_info: QueueInfo) -> CreateQueueResult:
        """
        Create a queue.

        Args:
            queue_info: Name and description of the queue

        Returns:
            CreateQueueResult
        """
        validate_instance(queue_info, QueueInfo, "queue_info")
        path = validate_path(queue_info.name, "queue_info.name")
        response = self._create_entity(
            path, path, queue_info.queue_description, QUEUE_DESCRIPTION
        )
        logger.log_operation("create_queue", "queue", path)
        return CreateQueueResult.create(response.body)

    @track_operation_time(logger, "delete_queue")
    def delete_queue(self, queue_path: str) -> None:
        """
        Delete a queue.

        Raises:
            InvalidArgumentError: If queue_path is not a non-empty string
        """
        queue_path = validate_path(queue_path, "queue_path")
        self._delete_entity(queue_path)
        logger.log_operation("delete_queue", "queue", queue_path)

    @track_operation_time(logger, "get_queue")
    def get_queue(self, queue_path: str) -> GetQueueResult:
        """Get the description of a queue."""
        queue_path = validate_path(queue_path, "queue_path")
        response = self._get_entity(queue_path)
        return GetQueueResult.create(response.body)

    @track_operation_time(logger, "list_queues")
    def list_queues(self, options: Optional[ListOptions] = None) -> ListQueuesResult:
        """List the queues of the namespace."""
        response = self._get_entity(LIST_QUEUES_PATH, options)
        return ListQueuesResult.create(response.body)

    # ========== Topics ==========

    @track_operation_time(logger, "create_topic")
    def create_topic(self, topic_info: TopicInfo) -> CreateTopicResult:
        """
        Create a topic.

        Args:
            topic_info: Name and description of the topic

        Returns:
            CreateTopicResult
        """
        validate_instance(topic_info, TopicInfo, "topic_info")
        path = validate_path(topic_info.name, "topic_info.name")
        response = self._create_entity(
            path, path, topic_info.topic_description, TOPIC_DESCRIPTION
        )
        logger.log_operation("create_topic", "topic", path)
        return CreateTopicResult.create(response.body)

    @track_operation_time(logger, "delete_topic")
    def delete_topic(self, topic_path: str) -> None:
        """Delete a topic."""
        topic_path = validate_path(topic_path, "topic_path")
        self._delete_entity(topic_path)
        logger.log_operation("delete_topic", "topic", topic_path)

    @track_operation_time(logger, "get_topic")
    def get_topic(self, topic_path: str) -> GetTopicResult:
        """Get the description of a topic."""
        topic_path = validate_path(topic_path, "topic_path")
        response = self._get_entity(topic_path)
        return GetTopicResult.create(response.body)

    @track_operation_time(logger, "list_topics")
    def list_topics(self, options: Optional[ListOptions] = None) -> ListTopicsResult:
        """List the topics of the namespace."""
        response = self._get_entity(LIST_TOPICS_PATH, options)
        return ListTopicsResult.create(response.body)

    # ========== Subscriptions ==========

    @track_operation_time(logger, "create_subscription")
    def create_subscription(
        self,
        topic_path: str,
        subscription_info: SubscriptionInfo,
    ) -> CreateSubscriptionResult:
        """
        Create a subscription on a topic.

        Args:
            topic_path: Path of the topic
            subscription_info: Name and description of the subscription

        Returns:
            CreateSubscriptionResult
        """
        topic_path = validate_path(topic_path, "topic_path")
        validate_instance(subscription_info, SubscriptionInfo, "subscription_info")
        name = validate_path(subscription_info.name, "subscription_info.name")
        path = SUBSCRIPTION_PATH.format(topic=topic_path, subscription=name)
        response = self._create_entity(
            path,
            name,
            subscription_info.subscription_description,
            SUBSCRIPTION_DESCRIPTION,
        )
        logger.log_operation("create_subscription", "subscription", path)
        return CreateSubscriptionResult.create(response.body)

    @track_operation_time(logger, "delete_subscription")
    def delete_subscription(self, topic_path: str, subscription_name: str) -> None:
        """Delete a subscription."""
        topic_path = validate_path(topic_path, "topic_path")
        subscription_name = validate_path(subscription_name, "subscription_name")
        path = SUBSCRIPTION_PATH.format(topic=topic_path, subscription=subscription_name)
        self._delete_entity(path)
        logger.log_operation("delete_subscription", "subscription", path)

    @track_operation_time(logger, "get_subscription")
    def get_subscription(self, topic_path: str, subscription_name: str) -> GetSubscriptionResult:
        """Get the description of a subscription."""
        topic_path = validate_path(topic_path, "topic_path")
        subscription_name = validate_path(subscription_name, "subscription_name")
        response = self._get_entity(
            SUBSCRIPTION_PATH.format(topic=topic_path, subscription=subscription_name)
        )
        return GetSubscriptionResult.create(response.body)

    @track_operation_time(logger, "list_subscriptions")
    def list_subscriptions(
        self,
        topic_path: str,
        options: Optional[ListOptions] = None,
    ) -> ListSubscriptionsResult:
        """List the subscriptions of a topic."""
        topic_path = validate_path(topic_path, "topic_path")
        response = self._get_entity(LIST_SUBSCRIPTIONS_PATH.format(topic=topic_path), options)
        return ListSubscriptionsResult.create(response.body)

    # ========== Rules ==========

    @track_operation_time(logger, "create_rule")
    def create_rule(
        self,
        topic_path: str,
        subscription_name: str,
        rule_info: RuleInfo,
    ) -> CreateRuleResult:
        """
        Create a rule on a subscription.

        Args:
            topic_path: Path of the topic
            subscription_name: Name of the subscription
            rule_info: Name and description of the rule

        Returns:
            CreateRuleResult
        """
        topic_path = validate_path(topic_path, "topic_path")
        subscription_name = validate_path(subscription_name, "subscription_name")
        validate_instance(rule_info, RuleInfo, "rule_info")
        rule_name = validate_path(rule_info.name, "rule_info.name")
        path = RULE_PATH.format(
            topic=topic_path, subscription=subscription_name, rule=rule_name
        )
        response = self._create_entity(
            path, rule_name, rule_info.rule_description, RULE_DESCRIPTION
        )
        logger.log_operation("create_rule", "rule", path)
        return CreateRuleResult.create(response.body)

    @track_operation_time(logger, "delete_rule")
    def delete_rule(self, topic_path: str, subscription_name: str, rule_name: str) -> None:
        """Delete a rule."""
        path = self._rule_path(topic_path, subscription_name, rule_name)
        self._delete_entity(path)
        logger.log_operation("delete_rule", "rule", path)

    @track_operation_time(logger, "get_rule")
    def get_rule(self, topic_path: str, subscription_name: str, rule_name: str) -> GetRuleResult:
        """Get the description of a rule."""
        response = self._get_entity(self._rule_path(topic_path, subscription_name, rule_name))
        return GetRuleResult.create(response.body)

    @track_operation_time(logger, "list_rules")
    def list_rules(
        self,
        topic_path: str,
        subscription_name: str,
        options: Optional[ListOptions] = None,
    ) -> ListRulesResult:
        """List the rules of a subscription."""
        topic_path = validate_path(topic_path, "topic_path")
        subscription_name = validate_path(subscription_name, "subscription_name")
        response = self._get_entity(
            LIST_RULES_PATH.format(topic=topic_path, subscription=subscription_name),
            options,
        )
        return ListRulesResult.create(response.body)

    @staticmethod
    def _rule_path(topic_path: str, subscription_name: str, rule_name: str) -> str:
        return RULE_PATH.format(
            topic=validate_path(topic_path, "topic_path"),
            subscription=validate_path(subscription_name, "subscription_name"),
            rule=validate_path(rule_name, "rule_name"),
        )
