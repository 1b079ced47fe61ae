"""
Scalar validators shared by configuration loading and the threshold API.

Each validator returns the coerced value or raises ValidationError carrying the
dotted field name, so callers can report exactly which setting was rejected.
"""

import math
from typing import Any, Callable, Iterable, Optional, TypeVar

from .exceptions import ValidationError

N = TypeVar("N", int, float)


def _coerce(value: Any, convert: Callable[[Any], N], kind: str, field_name: str) -> N:
    # bool is an int subclass; True is never a sensible port or interval.
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a valid {kind}, got {value}", field_name, value)
    try:
        return convert(value)
    except (ValueError, TypeError):
        raise ValidationError(f"{field_name} must be a valid {kind}, got {value}", field_name, value)


def _check_range(number: N, raw: Any, min_value: N, max_value: Optional[N], field_name: str) -> N:
    if number < min_value:
        raise ValidationError(f"{field_name} must be >= {min_value}, got {number}", field_name, raw)
    if max_value is not None and number > max_value:
        raise ValidationError(f"{field_name} must be <= {max_value}, got {number}", field_name, raw)
    return number


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate an integer within ``[min_value, max_value]``.

    Args:
        value: Raw value, typically from TOML or an environment variable
        min_value: Inclusive lower bound
        max_value: Inclusive upper bound, None for unbounded
        field_name: Dotted name used in the error

    Returns:
        The value as an int
    """
    number = _coerce(value, int, "integer", field_name)
    return _check_range(number, value, min_value, max_value, field_name)


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """Validate a number within ``[min_value, max_value]``; strings like "2.5" are accepted."""
    number = _coerce(value, float, "number", field_name)
    if math.isnan(number):
        raise ValidationError(f"{field_name} must be a valid number, got {value}", field_name, value)
    return _check_range(number, value, min_value, max_value, field_name)


def validate_percentage(value: Any, field_name: str = "value") -> float:
    """
    Validate a percentage in [0, 100].

    Strings are rejected here: threshold values arrive as JSON numbers and
    anything else is a malformed request.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise ValidationError(f"{field_name} must be numeric, got {value!r}", field_name, value)
    if not 0 <= value <= 100:
        raise ValidationError(f"{field_name} must be between 0 and 100, got {value}", field_name, value)
    return float(value)


def validate_boolean(value: Any, field_name: str = "value") -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean", field_name, value)
    return value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be a non-empty string", field_name, value)
    return value


def validate_enum_choice(value: Any, valid_choices: Iterable[str], field_name: str = "value") -> str:
    """
    Validate that ``value`` is one of ``valid_choices``.

    Raises:
        ValidationError: If the value is not an exact match
    """
    choices = list(valid_choices)
    str_value = str(value)
    if str_value not in choices:
        raise ValidationError(f"{field_name} must be one of {choices}, got {value}", field_name, value)
    return str_value
