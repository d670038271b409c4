"""
Service Bus Constants

Centralized constants for header names, media types, XML namespaces,
path templates, and status codes used by the REST proxy.

Author: Ayodele Oladeji
Date: 2026-01-12
"""

# HTTP methods
HTTP_GET = "GET"
HTTP_PUT = "PUT"
HTTP_POST = "POST"
HTTP_DELETE = "DELETE"

# Status codes
STATUS_OK = 200
STATUS_CREATED = 201
STATUS_NO_CONTENT = 204

# Header names
CONTENT_TYPE = "Content-Type"
BROKER_PROPERTIES = "BrokerProperties"
LOCATION = "Location"
DATE = "Date"

# Headers that never become custom message properties on receive
WELL_KNOWN_HEADERS = frozenset(
    name.lower() for name in (CONTENT_TYPE, BROKER_PROPERTIES, LOCATION, DATE)
)

# XML constants
XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'
ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"
XML_SCHEMA_INSTANCE_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
SERVICEBUS_NAMESPACE = "http://schemas.microsoft.com/netservices/2010/10/servicebus/connect"
XML_MEDIA_TYPE = "application/xml"
XML_MEDIA_TYPE_ATOM = "application/atom+xml"
ATOM_ENTRY_CONTENT_TYPE = "application/atom+xml;type=entry;charset=utf-8"

# Attributes placed on every serialized entity description
DESCRIPTION_ATTRIBUTES = {
    "xmlns:i": XML_SCHEMA_INSTANCE_NAMESPACE,
    "xmlns": SERVICEBUS_NAMESPACE,
}

# Root element names of entity descriptions
QUEUE_DESCRIPTION = "QueueDescription"
TOPIC_DESCRIPTION = "TopicDescription"
SUBSCRIPTION_DESCRIPTION = "SubscriptionDescription"
RULE_DESCRIPTION = "RuleDescription"

# Path templates
SEND_MESSAGE_PATH = "{path}/messages"
QUEUE_MESSAGE_PATH = "{queue}/messages/head"
SUBSCRIPTION_PATH = "{topic}/subscriptions/{subscription}"
SUBSCRIPTION_MESSAGE_PATH = "{topic}/subscriptions/{subscription}/messages/head"
RULE_PATH = "{topic}/subscriptions/{subscription}/rules/{rule}"
LIST_QUEUES_PATH = "$Resources/Queues"
LIST_TOPICS_PATH = "$Resources/Topics"
LIST_SUBSCRIPTIONS_PATH = "{topic}/subscriptions/"
LIST_RULES_PATH = "{topic}/subscriptions/{subscription}/rules/"

# Query parameters
QUERY_TIMEOUT = "timeout"
QUERY_SKIP = "$skip"
QUERY_TOP = "$top"

# Defaults
DEFAULT_REQUEST_TIMEOUT = 60.0
DEFAULT_RULE_NAME = "$Default"

# Error message templates
ERROR_EMPTY_ARGUMENT = "must be a non-empty string"
ERROR_UNKNOWN_RECEIVE_MODE = "The receive message option is in an unknown mode."
ERROR_NO_LOCK_LOCATION = "message has no lock location; it was not received in peek-lock mode"
