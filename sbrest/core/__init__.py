"""Core module initialization."""

from .config_manager import ConfigManager, ServiceBusConfig, LoggingConfig, LogLevel
from .logging_config import setup_logging, setup_logging_from_config, get_logger

__all__ = [
    "ConfigManager",
    "ServiceBusConfig",
    "LoggingConfig",
    "LogLevel",
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
]
