"""
Logging setup for sbrest.

Records are emitted through the standard logging module; this module
installs the handlers. Output is JSON (one object per line) or plain text,
and credentials that travel with Service Bus requests (SAS tokens, shared
access keys, Authorization headers) are masked in messages, arguments and
structured context before any handler writes them.
"""

import json
import logging
import logging.handlers
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config_manager import LoggingConfig

# Correlation ID of the operation being logged, set by the proxy per request
correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

REDACTED = "***REDACTED***"

# httpx logs every request line, URL and query string included, at INFO
LIBRARY_LOG_LEVELS: Dict[str, str] = {
    "httpx": "WARNING",
    "httpcore": "WARNING",
}

# Context keys whose values are dropped entirely
SENSITIVE_KEYS = frozenset({"authorization", "sharedaccesskey", "sas_token", "token"})


class SensitiveDataFilter(logging.Filter):
    """Mask Service Bus credentials in log records."""

    PATTERNS: List[Tuple["re.Pattern[str]", str]] = [
        (re.compile(r'(Authorization:\s+)(?:Bearer\s+|SharedAccessSignature\s+)?\S+', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'(SharedAccessKey=)[^;]+', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'(SharedAccessSignature\s+)\S+', re.IGNORECASE), r'\1' + REDACTED),
        (re.compile(r'(sig=)[^;&\s]+', re.IGNORECASE), r'\1' + REDACTED),
    ]

    @classmethod
    def redact(cls, text: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def _redact_value(self, key: str, value: Any) -> Any:
        if key.lower() in SENSITIVE_KEYS:
            return REDACTED
        if isinstance(value, str):
            return self.redact(value)
        if isinstance(value, dict):
            return {k: self._redact_value(str(k), v) for k, v in value.items()}
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(self.redact(a) if isinstance(a, str) else a for a in record.args)
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            record.context = {k: self._redact_value(k, v) for k, v in context.items()}
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with correlation ID and structured context."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }

        if corr_id := correlation_id.get():
            log_data["correlation_id"] = corr_id

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable single-line formatter."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def _attach(logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    handler.addFilter(SensitiveDataFilter())
    logger.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: Optional[str] = None,
    rotation_size: str = "10MB",
    rotation_count: int = 5,
    module_levels: Optional[Dict[str, str]] = None
) -> None:
    """
    Install sbrest log handlers on the root logger.

    Existing root handlers are replaced. httpx and httpcore are lowered to
    WARNING unless module_levels says otherwise.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" or "text"
        log_file: Optional file receiving the same records, rotated by size
        rotation_size: Size at which the log file rotates (e.g., "10MB")
        rotation_count: Number of rotated files kept
        module_levels: Per-logger levels,
                      e.g., {"sbrest.services.servicebus.proxy": "DEBUG"}
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    formatter = JSONFormatter() if format_type == "json" else TextFormatter()
    _attach(root_logger, logging.StreamHandler(sys.stdout), formatter)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=_parse_size(rotation_size),
            backupCount=rotation_count,
            encoding='utf-8'
        )
        _attach(root_logger, file_handler, formatter)

    levels = dict(LIBRARY_LOG_LEVELS)
    levels.update(module_levels or {})
    for module_name, module_level in levels.items():
        logging.getLogger(module_name).setLevel(getattr(logging, module_level.upper()))

    root_logger.debug(f"Logging configured: level={level}, format={format_type}, file={log_file}")


def setup_logging_from_config(config: LoggingConfig) -> None:
    """Install log handlers from a LoggingConfig section."""
    setup_logging(
        level=config.level,
        format_type=config.format,
        log_file=config.file,
        rotation_size=config.rotation_size,
        rotation_count=config.rotation_count,
        module_levels=config.module_levels,
    )


def _parse_size(size_str: str) -> int:
    """
    Parse a size such as "10MB" or "512KB" into bytes.

    A bare number is taken as bytes.
    """
    size_str = size_str.upper().strip()

    # Longer suffixes first so 'B' does not match 'MB'
    for suffix, multiplier in (('GB', 1024 ** 3), ('MB', 1024 ** 2), ('KB', 1024), ('B', 1)):
        if size_str.endswith(suffix):
            return int(float(size_str[:-len(suffix)].strip()) * multiplier)

    return int(size_str)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
