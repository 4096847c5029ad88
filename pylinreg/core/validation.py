"""
Input validation utilities for pylinreg.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about caller intent.

The one exception is is_usable(): record classification is permissive,
so it answers a question instead of raising.

Design principles:
    - No silent type coercion
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import numbers
from typing import Any, Sequence

import numpy as np

from pylinreg.core.exceptions import (
    ValidationError,
    InvalidArgumentError,
    SchemaMismatchError,
    InsufficientDataError,
)


def is_usable(value: Any) -> bool:
    """
    Check whether a record attribute value can enter the model.

    A value is usable when it is a real number (bools excluded) and finite.
    Missing attributes arrive here as None and are not usable.

    Args:
        value: Raw attribute value from a record

    Returns:
        True if the value can be used as a regression coordinate
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return False
    if not isinstance(value, numbers.Real):
        return False
    return bool(np.isfinite(float(value)))


def check_finite(value: Any, name: str) -> float:
    """
    Validate a scalar and convert it to float.

    Args:
        value: Scalar to validate
        name: Parameter name for error messages

    Returns:
        The value as a Python float

    Raises:
        ValidationError: If value is not a finite real number
    """
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise ValidationError(
            f"{name}: expected a real number, got {type(value).__name__}"
        )
    result = float(value)
    if not np.isfinite(result):
        raise ValidationError(f"{name}: must be finite, got {result}")
    return result


def check_choice(value: Any, allowed: Sequence[str], name: str) -> str:
    """
    Verify an enum-like argument is one of the allowed values.

    Args:
        value: Argument to check
        allowed: Accepted values
        name: Parameter name for error messages

    Returns:
        The value, unchanged

    Raises:
        InvalidArgumentError: If value is not in allowed
    """
    if value not in allowed:
        raise InvalidArgumentError(
            f"{name}: expected one of {list(allowed)}, got {value!r}",
            argument=name,
            value=value,
            allowed=allowed,
        )
    return value


def check_name(value: Any, name: str) -> str:
    """
    Verify an attribute name is a non-empty string.

    Raises:
        InvalidArgumentError: If value is not a non-empty string
    """
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(
            f"{name}: expected a non-empty attribute name, got {value!r}",
            argument=name,
            value=value,
        )
    return value


def check_columns(
    columns: Sequence[str],
    required: Sequence[str],
    name: str,
) -> None:
    """
    Verify a query result exposes every required column.

    Args:
        columns: Column names the query returned
        required: Column names that must be present
        name: Query description for error messages

    Raises:
        SchemaMismatchError: If any required column is missing
    """
    missing = [c for c in required if c not in columns]
    if missing:
        raise SchemaMismatchError(
            f"{name}: missing columns {missing}; "
            f"expected {list(required)}, got {list(columns)}",
            expected=required,
            actual=columns,
        )


def check_min_count(count: int, min_count: int, name: str) -> None:
    """
    Verify the model holds at least the minimum number of points.

    Args:
        count: Current number of points
        min_count: Minimum required points
        name: Description for error messages

    Raises:
        InsufficientDataError: If count < min_count
    """
    if count < min_count:
        raise InsufficientDataError(
            f"{name}: requires at least {min_count} data points, got {count}",
            count=count,
            required=min_count,
        )
