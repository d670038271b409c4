"""
sbrest: Service Bus REST client

Translates Service Bus operations (messages, queues, topics, subscriptions,
rules) into requests against the service's REST/Atom API.
"""

__version__ = "0.1.0"
__author__ = "Ayodele Oladeji"

from .services.servicebus.proxy import ServiceBusRestProxy

__all__ = ["ServiceBusRestProxy", "__version__"]
