"""
Tiered Price Estimator - cascading average-PSF tiers per time window.

Tiers, least to most specific:
    1. PROJECT_AVG  - every transaction in the window
    2. SIZE_MATCH   - |area - nearest standard size| < 50 sqft
    3. FLOOR_MATCH  - floor_mid inside the target floor band
    4. EXACT_MATCH  - size match AND floor match

Tier 2 needs a target size, tier 3 needs a target floor, tier 4 needs
both. An empty candidate set yields TierResult(psf=0, count=0).

Best estimate policy: specificity beats recency, recency beats a longer
lookback. The search is an explicit priority list evaluated in order;
the first non-empty (tier, window) wins and nothing is blended.
"""

import logging
from statistics import mean
from typing import Iterable, List, Optional, Sequence, Tuple

from constants import (
    SIZE_MATCH_TOLERANCE_SQFT,
    SIZE_OPTION_MIN_DISTINCT,
    SIZE_OPTION_PERCENTILES,
    WINDOW_PREFERENCE,
)
from services.valuation.bands import floor_in_band, parse_floor_band
from services.valuation.dates import NowLike
from services.valuation.growth import time_adjust
from services.valuation.models import (
    BestEstimate,
    Tier,
    TierEstimate,
    TierResult,
    TimeWindows,
    Transaction,
)
from utils.rounding import round_half_up

logger = logging.getLogger('valuation.tiers')


# =============================================================================
# SIZE OPTIONS
# =============================================================================

def project_size_options(transactions: Iterable[Transaction]) -> List[float]:
    """
    Standard unit sizes offered for a project.

    With 7+ distinct areas, sample the 5/15/30/50/70/85/95th percentile
    positions; otherwise offer every distinct area.
    """
    areas = sorted({t.area for t in transactions if t.area})
    if len(areas) >= SIZE_OPTION_MIN_DISTINCT:
        picked = [areas[int(p * (len(areas) - 1))] for p in SIZE_OPTION_PERCENTILES]
        return sorted(set(picked))
    return areas


def default_target_size(size_options: Sequence[float]) -> float:
    """Middle size option, or 0 when the project has none."""
    if not size_options:
        return 0
    return size_options[len(size_options) // 2]


def nearest_size(target_size: float, size_options: Sequence[float]) -> float:
    """Snap a target to the closest standard size; ties keep the smaller option."""
    if not size_options:
        return target_size
    best = size_options[0]
    for option in size_options:
        if abs(option - target_size) < abs(best - target_size):
            best = option
    return best


# =============================================================================
# TIER COMPUTATION
# =============================================================================

def calc_tier(transactions: Iterable[Transaction]) -> TierResult:
    """Unweighted mean PSF (rounded), count and date-descending list."""
    txs = list(transactions)
    if not txs:
        return TierResult(psf=0, count=0, transactions=[])
    ordered = sorted(txs, key=lambda t: t.date, reverse=True)
    return TierResult(psf=round_half_up(mean(t.psf for t in txs)), count=len(txs), transactions=ordered)


def _size_match(size: float):
    return lambda t: abs(t.area - size) < SIZE_MATCH_TOLERANCE_SQFT


def _floor_match(bounds: Tuple[int, Optional[int]]):
    lo, hi = bounds
    return lambda t: floor_in_band(t.floor_mid, lo, hi)


def _tier_for(tier: Tier, windows: TimeWindows, predicate) -> TierEstimate:
    return TierEstimate(
        tier=tier,
        m3=calc_tier(t for t in windows.m3 if predicate(t)),
        m6=calc_tier(t for t in windows.m6 if predicate(t)),
        m12=calc_tier(t for t in windows.m12 if predicate(t)),
    )


def build_tier_estimates(
    windows: TimeWindows,
    target_size: Optional[float] = None,
    target_floor: Optional[str] = None,
    size_options: Optional[Sequence[float]] = None,
) -> List[TierEstimate]:
    """
    Compute every applicable tier for every window.

    Args:
        windows: Output of partition_windows()
        target_size: Requested unit size in sqft (snapped to size_options)
        target_floor: Requested floor band label, e.g. "11-15"
        size_options: Standard sizes for snapping (default: none)

    Returns:
        Tiers in ascending specificity order
    """
    tiers = [_tier_for(Tier.PROJECT_AVG, windows, lambda t: True)]

    size = nearest_size(target_size, size_options or []) if target_size else None
    bounds = parse_floor_band(target_floor) if target_floor else None

    if size:
        tiers.append(_tier_for(Tier.SIZE_MATCH, windows, _size_match(size)))
    if bounds:
        tiers.append(_tier_for(Tier.FLOOR_MATCH, windows, _floor_match(bounds)))
    if size and bounds:
        size_ok, floor_ok = _size_match(size), _floor_match(bounds)
        tiers.append(_tier_for(Tier.EXACT_MATCH, windows, lambda t: size_ok(t) and floor_ok(t)))

    return tiers


# =============================================================================
# BEST ESTIMATE
# =============================================================================

def estimate_priority(tiers: Sequence[TierEstimate]) -> List[Tuple[TierEstimate, str]]:
    """Ordered (tier, window) search list: most specific tier first, then 3M > 6M > 12M."""
    ordered = sorted(tiers, key=lambda t: t.tier.value, reverse=True)
    return [(tier, period) for tier in ordered for period in WINDOW_PREFERENCE]


def select_best_estimate(
    tiers: Sequence[TierEstimate],
    target_size: Optional[float] = None,
    cagr_percent: Optional[float] = None,
    now: NowLike = None,
) -> Optional[BestEstimate]:
    """
    First non-empty (tier, window) in priority order, time-adjusted.

    The adjustment projects the tier PSF from the median-position
    transaction date of that tier's date-descending list.

    Returns:
        BestEstimate, or None when no tier has data in any window
    """
    for tier, period in estimate_priority(tiers):
        result = tier.window(period)
        if not result.has_data:
            continue

        median_date = result.transactions[len(result.transactions) // 2].date
        adjustment = time_adjust(result.psf, median_date, cagr_percent, now)
        logger.debug(f"Best estimate: {tier.tier.name} {period} psf={result.psf} n={result.count}")
        return BestEstimate(
            tier=tier.tier,
            period=period,
            psf=result.psf,
            count=result.count,
            transactions=result.transactions,
            estimated_price=result.psf * (target_size or 0),
            adjustment=adjustment,
        )

    return None
