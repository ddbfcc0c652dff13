"""
Shared Pydantic types and validators for API params.

These replicate the normalization logic from normalize.py:
- CoercedDate: "2025-06-15" -> date(2025, 6, 15)
- CoercedFloat: "900" -> 900.0
- YearStr: 2024 -> "2024"
- FilterValue: "all" / "" -> None, 3 -> "3"
"""

from datetime import date, datetime
from typing import Annotated, Optional, Any

from pydantic import BeforeValidator

from constants import FILTER_ALL


def coerce_date(v: Any) -> Optional[date]:
    """
    Coerce value to date object.

    Handles:
    - datetime object: its date
    - date object: passthrough
    - string: parse as YYYY-MM-DD
    - None/empty: None

    Examples:
        "2025-06-15" -> date(2025, 6, 15)
        None -> None
    """
    if v is None or v == '':
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    if isinstance(v, str):
        try:
            return datetime.strptime(v, '%Y-%m-%d').date()
        except ValueError:
            # Let Pydantic validation handle the error
            return v  # type: ignore
    return v  # type: ignore


def coerce_float(v: Any) -> Optional[float]:
    """Coerce value to float."""
    if v is None or v == '':
        return None
    if isinstance(v, bool):
        return v  # type: ignore
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str):
        try:
            return float(v)
        except ValueError:
            return v  # type: ignore
    return v  # type: ignore


def coerce_year(v: Any) -> Optional[str]:
    """Coerce a calendar year to its 4-digit string."""
    if v is None or v == '':
        return None
    if isinstance(v, int) and not isinstance(v, bool):
        return f"{v:04d}"
    if isinstance(v, str) and v.strip().isdigit() and len(v.strip()) == 4:
        return v.strip()
    raise ValueError(f"Expected a 4-digit year, got {v!r}")


def coerce_filter_value(v: Any) -> Optional[str]:
    """'all' and empty mean "no filter"; anything else becomes a string."""
    if v is None:
        return None
    text = str(v).strip()
    if text == '' or text.lower() == FILTER_ALL:
        return None
    return text


CoercedDate = Annotated[Optional[date], BeforeValidator(coerce_date)]
CoercedFloat = Annotated[Optional[float], BeforeValidator(coerce_float)]
YearStr = Annotated[Optional[str], BeforeValidator(coerce_year)]
FilterValue = Annotated[Optional[str], BeforeValidator(coerce_filter_value)]
