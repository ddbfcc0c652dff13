"""
Input Normalization Utilities
=============================

Single source of truth for input normalization.
All parsing of external inputs happens here, nowhere else.

Usage:
    from utils.normalize import to_positive_float, to_year_month, ValidationError

    try:
        target_size = to_positive_float(payload.get("targetSize"), field="targetSize")
        year, month = to_year_month(tx["date"], field="date")
    except ValidationError as e:
        return validation_error_response(e)

The valuation engine itself raises ValidationError only for contract
violations (malformed dates, non-positive sizes, bad floor labels).
Thin data is never an error.
"""

import re
from datetime import date, datetime
from typing import Optional, Tuple


_YEAR_MONTH_RE = re.compile(r'^(\d{4})-(\d{1,2})(?:-\d{1,2})?$')


class ValidationError(ValueError):
    """Raised when input cannot be normalized to expected type."""

    def __init__(self, message: str, field: str = None, received_value=None):
        super().__init__(message)
        self.field = field
        self.received_value = received_value


def to_float(
    value,
    *,
    default: Optional[float] = None,
    field: str = None
) -> Optional[float]:
    """
    Convert value to float, with explicit None handling.

    Raises:
        ValidationError: If value cannot be converted to float
    """
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"Expected float, got {type(value).__name__}: {value!r}",
            field=field,
            received_value=value
        )


def to_positive_float(
    value,
    *,
    default: Optional[float] = None,
    field: str = None
) -> Optional[float]:
    """Like to_float, but rejects zero and negative numbers."""
    result = to_float(value, default=default, field=field)
    if result is not None and result <= 0:
        raise ValidationError(
            f"Expected a positive number, got {value!r}",
            field=field,
            received_value=value
        )
    return result


def to_str(
    value,
    *,
    default: Optional[str] = None,
    strip: bool = True,
) -> Optional[str]:
    """Normalize string input; whitespace-only is treated as empty."""
    if value is None or value == "":
        return default
    result = str(value)
    if strip:
        result = result.strip()
    if result == "":
        return default
    return result


def to_year_month(value, *, field: str = None) -> Tuple[int, int]:
    """
    Parse a transaction date into (year, month).

    Accepts:
        - "YYYY-MM" (canonical transaction date)
        - "YYYY-MM-DD" (day is ignored)
        - date / datetime objects

    Raises:
        ValidationError: If the value is not a well-formed year-month
    """
    if isinstance(value, (date, datetime)):
        return value.year, value.month
    if isinstance(value, str):
        match = _YEAR_MONTH_RE.match(value.strip())
        if match:
            year, month = int(match.group(1)), int(match.group(2))
            if 1 <= month <= 12:
                return year, month
    raise ValidationError(
        f"Expected year-month (YYYY-MM), got {type(value).__name__}: {value!r}",
        field=field,
        received_value=value
    )


def validation_error_response(error: ValidationError) -> tuple:
    """
    Convert ValidationError to a structured 400 response tuple.

    Usage:
        try:
            size = to_positive_float(payload.get("targetSize"))
        except ValidationError as e:
            return validation_error_response(e)

    Returns:
        Tuple of (dict, 400) suitable for Flask response
    """
    response = {
        "error": str(error),
        "type": "validation_error"
    }
    if error.field:
        response["field"] = error.field
    if error.received_value is not None:
        response["received_value"] = str(error.received_value)
    return response, 400
