"""
Floor band labels.

A band label is "lo-hi" ("11-15", "01-05") or open-ended "lo+" ("31+").
Bounds are inclusive. An open band has hi = None.
"""

import re
from typing import Optional, Tuple

from utils.normalize import ValidationError


_BAND_RE = re.compile(r'^\s*(\d+)\s*(?:-|to)\s*(\d+)\s*$', re.IGNORECASE)
_OPEN_BAND_RE = re.compile(r'^\s*(\d+)\s*\+\s*$')


def parse_floor_band(label: str) -> Tuple[int, Optional[int]]:
    """
    Parse a band label into inclusive (lo, hi) bounds.

    Examples:
        >>> parse_floor_band('06-10')
        (6, 10)
        >>> parse_floor_band('31+')
        (31, None)

    Raises:
        ValidationError: On malformed labels or lo > hi
    """
    text = str(label) if label is not None else ''
    match = _BAND_RE.match(text)
    if match:
        lo, hi = int(match.group(1)), int(match.group(2))
        if lo > hi:
            raise ValidationError(
                f"Floor band lower bound exceeds upper bound: {label!r}",
                field='floor',
                received_value=label,
            )
        return lo, hi
    match = _OPEN_BAND_RE.match(text)
    if match:
        return int(match.group(1)), None
    raise ValidationError(
        f"Expected floor band like '11-15' or '31+', got {label!r}",
        field='floor',
        received_value=label,
    )


def band_midpoint(label: str) -> float:
    """Midpoint used as the target floor; open bands use their lower bound."""
    lo, hi = parse_floor_band(label)
    if hi is None:
        return float(lo)
    return (lo + hi) / 2


def floor_in_band(floor_mid: Optional[float], lo: int, hi: Optional[int]) -> bool:
    """Missing floors count as floor 0 and so never match a real band."""
    fm = floor_mid or 0
    if fm < lo:
        return False
    return hi is None or fm <= hi


def find_band(floor_mid: Optional[float], labels) -> Optional[str]:
    """First band (in the given order) containing the floor, or None."""
    for label in labels:
        lo, hi = parse_floor_band(label)
        if floor_in_band(floor_mid, lo, hi):
            return label
    return None
