"""
Half-up rounding for reported PSF, percentages and scores.

Python's round() sends halves to the nearest even digit (round(4.5) == 4).
Dashboard figures round halves away from zero instead, so every reported
number goes through round_half_up().
"""

from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value, ndigits: int = 0):
    """
    Round with halves away from zero.

    Returns an int when ndigits is 0, else a float.

    Example:
        >>> round_half_up(4.5)
        5
        >>> round_half_up(-16.65, 1)
        -16.7
    """
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if ndigits == 0:
        return int(rounded)
    return float(rounded)
