"""
Growth - CAGR bucket calculator and time-value adjuster.

CAGR is measured between the average PSF of two calendar years:

    cagr = (end_avg / start_avg) ** (1 / (end_year - start_year)) - 1

Results are never hidden for being thin. An endpoint year with fewer
than 3 transactions sets low_confidence so the caller can flag it.

A None rate means growth is indeterminate (single year of data, empty
endpoint). The time adjuster propagates that as rate_used = None and
leaves the PSF untouched rather than assuming 0% growth.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from constants import CAGR_MIN_ENDPOINT_SAMPLES
from services.valuation.dates import NowLike, months_elapsed
from services.valuation.models import CAGRResult, TimeAdjustment, Transaction, YearBucket
from utils.normalize import ValidationError
from utils.rounding import round_half_up

logger = logging.getLogger('valuation.growth')


def compute_cagr(start_avg: Optional[float], end_avg: Optional[float], years: int) -> Optional[float]:
    """
    Compound annual growth rate in percent, or None if indeterminate.

    Example:
        >>> round(compute_cagr(1500, 1800, 3), 2)
        6.27
    """
    if not start_avg or not end_avg or not years or years <= 0:
        return None
    if start_avg < 0 or end_avg < 0:
        return None
    return ((end_avg / start_avg) ** (1 / years) - 1) * 100


def _group_psf_by_year(transactions: Iterable[Transaction]) -> Dict[str, List[float]]:
    by_year: Dict[str, List[float]] = defaultdict(list)
    for tx in transactions:
        by_year[str(tx.year)].append(tx.psf)
    return by_year


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def compute_bucket_cagr(
    transactions: Iterable[Transaction],
    start_year: Optional[str] = None,
    end_year: Optional[str] = None,
) -> CAGRResult:
    """
    Year-over-year average PSF and the CAGR between two endpoint years.

    Args:
        transactions: Working transaction set
        start_year: First year (default: earliest year present)
        end_year: Last year (default: latest year present)

    Returns:
        CAGRResult. cagr_percent is None when fewer than two distinct
        years have data or either endpoint has no samples.
    """
    txs = list(transactions)
    if not txs:
        return CAGRResult(
            start_year=None, end_year=None, start_avg=None, end_avg=None,
            start_n=0, end_n=0, total_count=0, cagr_percent=None,
            low_confidence=True, annual_series=[],
        )

    by_year = _group_psf_by_year(txs)
    years = sorted(by_year.keys())
    sy = str(start_year) if start_year else years[0]
    ey = str(end_year) if end_year else years[-1]

    start_values = by_year.get(sy, [])
    end_values = by_year.get(ey, [])
    start_mean = _mean(start_values)
    end_mean = _mean(end_values)

    try:
        span = int(ey) - int(sy)
    except ValueError:
        span = 0

    cagr = None
    if len(years) >= 2 and start_values and end_values:
        # Exact means, so a clean geometric series round-trips
        cagr = compute_cagr(start_mean, end_mean, span)

    low_confidence = (
        len(start_values) < CAGR_MIN_ENDPOINT_SAMPLES
        or len(end_values) < CAGR_MIN_ENDPOINT_SAMPLES
    )

    annual_series = [
        YearBucket(year=y, average_psf=round_half_up(_mean(by_year[y])), count=len(by_year[y]))
        for y in years
    ]

    if cagr is None:
        logger.debug(f"CAGR indeterminate for {sy}-{ey} ({len(years)} distinct years)")

    return CAGRResult(
        start_year=sy,
        end_year=ey,
        start_avg=round_half_up(start_mean) if start_mean is not None else None,
        end_avg=round_half_up(end_mean) if end_mean is not None else None,
        start_n=len(start_values),
        end_n=len(end_values),
        total_count=len(txs),
        cagr_percent=cagr,
        low_confidence=low_confidence,
        annual_series=annual_series,
    )


def project_forward(psf: float, months: int, cagr_percent: float) -> float:
    """Compound a PSF forward by `months` at an annual rate (multiplicative)."""
    if months < 0:
        raise ValidationError(f"months must be non-negative, got {months}", field="months", received_value=months)
    return psf * (1 + cagr_percent / 100) ** (months / 12)


def time_adjust(
    psf: float,
    transaction_date: Optional[str],
    cagr_percent: Optional[float],
    now: NowLike = None,
) -> TimeAdjustment:
    """
    Project a historical PSF to today's value.

    - No rate: PSF unchanged, rate_used = None ("cannot adjust")
    - Less than one month elapsed: PSF unchanged, rate still surfaced
    - Otherwise: round_half_up(psf * (1 + r/100) ** (months/12))
    """
    if not psf or not transaction_date:
        return TimeAdjustment(adjusted_psf=psf, months_elapsed=0, rate_used=None)

    months = months_elapsed(transaction_date, now)
    if cagr_percent is None:
        return TimeAdjustment(adjusted_psf=psf, months_elapsed=months, rate_used=None)
    if months < 1:
        return TimeAdjustment(adjusted_psf=psf, months_elapsed=0, rate_used=cagr_percent)

    adjusted = round_half_up(project_forward(psf, months, cagr_percent))
    return TimeAdjustment(adjusted_psf=adjusted, months_elapsed=months, rate_used=cagr_percent)
