"""
Service Bus Argument Validation

Checks applied to caller-supplied values before any request is issued.

Author: Ayodele Oladeji
Date: 2026-01-12
"""

from typing import Any, Optional, Tuple, Type, Union

from .constants import ERROR_EMPTY_ARGUMENT
from .exceptions import InvalidArgumentError


def validate_string(value: Any, name: str) -> None:
    """
    Ensure a value is a string.

    Raises:
        InvalidArgumentError: If value is not a str
    """
    if not isinstance(value, str):
        raise InvalidArgumentError(
            name, f"expected a string, got {type(value).__name__}"
        )


def validate_not_empty(value: Any, name: str) -> None:
    """
    Ensure a value is neither None nor empty.

    Raises:
        InvalidArgumentError: If value is None or empty
    """
    if value is None:
        raise InvalidArgumentError(name, "must not be None")
    if hasattr(value, "__len__") and len(value) == 0:
        raise InvalidArgumentError(name, "must not be empty")


def validate_path(value: Any, name: str) -> str:
    """
    Validate an entity path or name.

    Args:
        value: Path to validate
        name: Argument name, used in the error

    Returns:
        The path with surrounding slashes removed

    Raises:
        InvalidArgumentError: If value is not a non-empty string
    """
    validate_not_empty(value, name)
    validate_string(value, name)
    if not value.strip("/ "):
        raise InvalidArgumentError(name, ERROR_EMPTY_ARGUMENT)
    return value.strip("/")


def validate_instance(
    value: Any,
    expected: Union[Type, Tuple[Type, ...]],
    name: str,
    reason: Optional[str] = None
) -> None:
    """
    Ensure a value is an instance of the expected model type.

    Raises:
        InvalidArgumentError: If value is None or of another type
    """
    if not isinstance(value, expected):
        if isinstance(expected, tuple):
            expected_name = " or ".join(t.__name__ for t in expected)
        else:
            expected_name = expected.__name__
        raise InvalidArgumentError(
            name,
            reason or f"expected {expected_name}, got {type(value).__name__}",
        )
