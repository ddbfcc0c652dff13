"""
Time-Window Partitioner - rolling 3M / 6M / 12M windows.

A window keeps every transaction whose date >= cutoff(months). Because
all windows share the same test against a monotone cutoff, m12 contains
m6 contains m3.
"""

from typing import Iterable

from constants import WINDOW_MONTHS
from services.valuation.dates import NowLike, window_cutoff
from services.valuation.models import TimeWindows, Transaction


def partition_windows(transactions: Iterable[Transaction], now: NowLike = None) -> TimeWindows:
    """Bucket transactions into overlapping rolling windows anchored to now."""
    txs = list(transactions)
    if not txs:
        return TimeWindows(m3=[], m6=[], m12=[])

    cutoffs = {period: window_cutoff(months, now) for period, months in WINDOW_MONTHS.items()}
    return TimeWindows(
        m3=[t for t in txs if t.date >= cutoffs['3M']],
        m6=[t for t in txs if t.date >= cutoffs['6M']],
        m12=[t for t in txs if t.date >= cutoffs['12M']],
    )
