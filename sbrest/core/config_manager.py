"""
Configuration management for sbrest.

Handles loading and validation of the settings used to build a REST proxy.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "SBREST_"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


# Variable suffix -> (settings path, converter)
ENV_VARIABLES: Dict[str, Tuple[Tuple[str, ...], Callable[[str], Any]]] = {
    "ENDPOINT": (("endpoint",), str),
    "TIMEOUT": (("timeout",), float),
    "VERIFY_SSL": (("verify_ssl",), _parse_bool),
    "LOG_LEVEL": (("logging", "level"), str.upper),
    "LOG_FORMAT": (("logging", "format"), str.lower),
    "LOG_FILE": (("logging", "file"), str),
    "LOG_ROTATION_SIZE": (("logging", "rotation_size"), str),
    "LOG_ROTATION_COUNT": (("logging", "rotation_count"), int),
}


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "json"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = Field(default=5, ge=0)
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'sbrest.services.servicebus.proxy': 'DEBUG'}"
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    model_config = ConfigDict(use_enum_values=True)


class ServiceBusConfig(BaseModel):
    """Settings of a Service Bus REST proxy."""

    endpoint: str = Field(
        default="https://localhost/",
        description="Namespace URI, e.g. https://mynamespace.servicebus.windows.net/"
    )
    timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Client-side request timeout in seconds"
    )
    verify_ssl: bool = True
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Headers sent with every request"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate endpoint is an http(s) URI."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Endpoint must start with http:// or https://")
        return v.rstrip("/") + "/"


class ConfigManager:
    """
    Loads and validates sbrest configuration.

    Configuration precedence (highest to lowest):
    1. Explicit overrides
    2. Environment variables (SBREST_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[ServiceBusConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> ServiceBusConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            overrides: Dictionary of explicit overrides

        Returns:
            Validated ServiceBusConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.debug(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.debug(f"Applied {len(env_config)} environment variable overrides")

        if overrides:
            config_dict = self._merge_configs(config_dict, overrides)

        try:
            self._config = ServiceBusConfig(**config_dict)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise
        self._log_configuration()
        return self._config

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

        # Settings may sit at the top level or under a 'servicebus' key
        if isinstance(data, dict) and isinstance(data.get("servicebus"), dict):
            return data["servicebus"]
        return data

    def _load_from_env(self) -> Dict[str, Any]:
        """Collect SBREST_* variables into a nested settings dict."""
        config: Dict[str, Any] = {}

        for suffix, (path, convert) in ENV_VARIABLES.items():
            raw = os.getenv(ENV_PREFIX + suffix)
            if not raw:
                continue
            try:
                value = convert(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {ENV_PREFIX}{suffix}: {raw!r}") from e

            section = config
            for key in path[:-1]:
                section = section.setdefault(key, {})
            section[path[-1]] = value

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration with header values redacted."""
        if not self._config:
            return

        config_dict = self._config.model_dump()
        config_dict["headers"] = {name: "***REDACTED***" for name in config_dict["headers"]}

        logger.debug(f"Active configuration: {json.dumps(config_dict, indent=2)}")

    def get_config(self) -> ServiceBusConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> ServiceBusConfig:
        """Reload configuration from the same sources."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
