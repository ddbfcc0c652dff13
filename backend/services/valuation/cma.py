"""
CMA Valuation Scorer - weighted comparable market analysis.

Every comparable gets a similarity weight in [0, 1]:

    weight = recency * size * floor

    recency = exp(-0.5 * months_ago / 18)
    size    = exp(-0.5 * (size_delta / 150) ** 2)          # sqft
    floor   = exp(-0.5 * (floor_delta / 8) ** 2)           # floors
              0.5 when target or comparable floor is unknown

The recency term is kept exactly as calibrated in the dashboard; it is
not a ln(2) half-life and must not be "corrected" without recalibrating
the confidence score.

Each comparable's PSF is adjusted before averaging:
    1. projected to today with the project CAGR
    2. moved to the target floor with the premium differential
       (target band premium - comparable band premium)

The estimate is the weighted mean of adjusted PSF, the range is
mean +/- weighted standard deviation, and confidence (0-100) blends
capped evidence counts.

Fewer than 3 usable comparables, or a total weight of exactly zero,
returns None: "no valuation possible" is an expected state, not an error.
"""

import logging
import math
from typing import Iterable, List, Optional, Sequence

from constants import (
    CONF_FLOOR_MATCH_CAP,
    CONF_FLOOR_MATCH_FLOORS,
    CONF_RECENT_CAP,
    CONF_SIZE_MATCH_CAP,
    CONF_SIZE_MATCH_SQFT,
    CONF_VOLUME_CAP,
    CONFIDENCE_WEIGHTS_NO_FLOOR,
    CONFIDENCE_WEIGHTS_WITH_FLOOR,
    FLOOR_SIGMA_FLOORS,
    MIN_COMPARABLES,
    MIN_PREMIUM_BANDS,
    NEUTRAL_FLOOR_WEIGHT,
    RECENCY_DECAY_MONTHS,
    RECENT_12MO,
    RECENT_6MO,
    SIZE_SIGMA_SQFT,
    TOP_COMPARABLES,
)
from services.valuation.dates import NowLike, months_elapsed, resolve_now
from services.valuation.floor_premium import find_premium
from services.valuation.growth import project_forward
from services.valuation.models import FloorBand, ScoredTransaction, Transaction, ValuationModel
from utils.normalize import ValidationError
from utils.rounding import round_half_up

logger = logging.getLogger('valuation.cma')


# =============================================================================
# WEIGHT KERNELS
# =============================================================================

def recency_weight(months_ago: int) -> float:
    if months_ago < 0:
        raise ValidationError(
            f"months_ago must be non-negative, got {months_ago}",
            field='months_ago',
            received_value=months_ago,
        )
    return math.exp(-0.5 * months_ago / RECENCY_DECAY_MONTHS)


def size_weight(size_delta: float) -> float:
    return math.exp(-0.5 * (size_delta / SIZE_SIGMA_SQFT) ** 2)


def floor_weight(target_floor_mid: Optional[float], floor_mid: Optional[float]) -> float:
    if not target_floor_mid or not floor_mid:
        return NEUTRAL_FLOOR_WEIGHT
    return math.exp(-0.5 * ((floor_mid - target_floor_mid) / FLOOR_SIGMA_FLOORS) ** 2)


# =============================================================================
# SCORING
# =============================================================================

def adjust_comparable_psf(
    tx: Transaction,
    months_ago: int,
    target_floor_mid: Optional[float],
    cagr_percent: Optional[float],
    floor_bands: Sequence[FloorBand],
) -> int:
    """Time-adjust then floor-adjust a comparable's PSF (multiplicative)."""
    adjusted = tx.psf
    if months_ago > 0 and cagr_percent is not None:
        adjusted = project_forward(adjusted, months_ago, cagr_percent)
    if target_floor_mid and tx.floor_mid and len(floor_bands) >= MIN_PREMIUM_BANDS:
        differential = find_premium(floor_bands, target_floor_mid) - find_premium(floor_bands, tx.floor_mid)
        adjusted = adjusted * (1 + differential / 100)
    return round_half_up(adjusted)


def score_transactions(
    transactions: Iterable[Transaction],
    target_size: float,
    target_floor_mid: Optional[float] = None,
    cagr_percent: Optional[float] = None,
    floor_bands: Optional[Sequence[FloorBand]] = None,
    now: NowLike = None,
) -> List[ScoredTransaction]:
    """Weight and adjust every comparable. Input order is preserved."""
    current = resolve_now(now)
    bands = list(floor_bands or [])
    scored = []
    for tx in transactions:
        months_ago = months_elapsed(tx.date, current)
        size_delta = abs(tx.area - target_size)
        w_recency = recency_weight(months_ago)
        w_size = size_weight(size_delta)
        w_floor = floor_weight(target_floor_mid, tx.floor_mid)
        scored.append(ScoredTransaction(
            transaction=tx,
            weight=w_recency * w_size * w_floor,
            adjusted_psf=adjust_comparable_psf(tx, months_ago, target_floor_mid, cagr_percent, bands),
            months_ago=months_ago,
            size_delta=size_delta,
            recency_weight=w_recency,
            size_weight=w_size,
            floor_weight=w_floor,
        ))
    return scored


def compute_confidence(
    recent_12mo: int,
    size_matches: int,
    floor_matches: Optional[int],
    total: int,
) -> int:
    """
    Confidence 0-100 from capped evidence counts.

    With a floor target: recency 30, size 25, floor 20, volume 25.
    Without one the floor share is redistributed: 40 / 30 / 30.
    """
    recency = min(recent_12mo, CONF_RECENT_CAP) / CONF_RECENT_CAP
    size = min(size_matches, CONF_SIZE_MATCH_CAP) / CONF_SIZE_MATCH_CAP
    volume = min(total, CONF_VOLUME_CAP) / CONF_VOLUME_CAP

    if floor_matches is not None:
        w = CONFIDENCE_WEIGHTS_WITH_FLOOR
        floor = min(floor_matches, CONF_FLOOR_MATCH_CAP) / CONF_FLOOR_MATCH_CAP
        score = recency * w['recency'] + size * w['size'] + floor * w['floor'] + volume * w['volume']
    else:
        w = CONFIDENCE_WEIGHTS_NO_FLOOR
        score = recency * w['recency'] + size * w['size'] + volume * w['volume']

    return max(0, min(100, round_half_up(score)))


def compute_valuation_model(
    transactions: Iterable[Transaction],
    target_size: float,
    target_floor_mid: Optional[float] = None,
    cagr_percent: Optional[float] = None,
    floor_bands: Optional[Sequence[FloorBand]] = None,
    now: NowLike = None,
    min_comparables: int = MIN_COMPARABLES,
) -> Optional[ValuationModel]:
    """
    Weighted CMA valuation for a target unit.

    Args:
        transactions: Working set (already master-filtered)
        target_size: Target unit size in sqft
        target_floor_mid: Target floor midpoint, or None for any floor
        cagr_percent: Project CAGR; None disables time adjustment
        floor_bands: Floor premium table used for floor adjustment
        now: Reference date (default today)
        min_comparables: Minimum usable comparables

    Returns:
        ValuationModel, or None when no valuation is possible
    """
    if target_size is None or target_size <= 0:
        raise ValidationError(
            f"target_size must be positive, got {target_size!r}",
            field='targetSize',
            received_value=target_size,
        )

    # Zero or missing PSF would poison the weighted mean
    txs = [t for t in transactions if t.psf and t.psf > 0]
    if len(txs) < min_comparables:
        logger.debug(f"CMA skipped: {len(txs)} comparables (< {min_comparables})")
        return None

    scored = score_transactions(txs, target_size, target_floor_mid, cagr_percent, floor_bands, now)

    total_weight = sum(s.weight for s in scored)
    if total_weight == 0:
        logger.debug("CMA skipped: all comparable weights underflowed to zero")
        return None

    estimated = round_half_up(sum(s.adjusted_psf * s.weight for s in scored) / total_weight)
    variance = sum(s.weight * (s.adjusted_psf - estimated) ** 2 for s in scored) / total_weight
    std_dev = round_half_up(math.sqrt(variance))

    top = sorted(scored, key=lambda s: s.weight, reverse=True)[:TOP_COMPARABLES]
    recent_12mo = sum(1 for s in scored if s.months_ago <= RECENT_12MO)
    size_matches = sum(1 for s in scored if s.size_delta < CONF_SIZE_MATCH_SQFT)
    floor_matches = None
    if target_floor_mid:
        floor_matches = sum(
            1 for s in scored
            if s.floor_mid and abs(s.floor_mid - target_floor_mid) <= CONF_FLOOR_MATCH_FLOORS
        )

    model = ValuationModel(
        estimated_psf=estimated,
        low_psf=estimated - std_dev,
        high_psf=estimated + std_dev,
        std_dev_psf=std_dev,
        top_comparables=top,
        total_count=len(scored),
        recent_6mo_count=sum(1 for s in scored if s.months_ago <= RECENT_6MO),
        recent_12mo_count=recent_12mo,
        size_match_count=size_matches,
        floor_match_count=floor_matches,
        confidence=compute_confidence(recent_12mo, size_matches, floor_matches, len(scored)),
        cagr_used=cagr_percent,
    )
    logger.debug(
        f"CMA: psf={model.estimated_psf} +/-{std_dev} n={model.total_count} "
        f"confidence={model.confidence}"
    )
    return model
