"""
Floor Premium Estimator - average PSF per floor band and premium curve.

Two tables:

- compute_floor_premiums(): the filtered view. Bands are recomputed
  from scratch over the filtered set, the baseline is the FIRST band
  present in range order, and `baseline_source` is 'filtered'. If the
  lowest band has no data the baseline silently moves up to the next
  band; callers comparing curves across filters should check `floors[0]`.

- compute_project_floor_premiums(): the unfiltered project table that
  the engine reuses while no filters are active. It prefers the last 12
  months when enough floors exist, and baselines against floors 1-5
  when those are not thin.

Thin bands (< 3 transactions) are flagged, never dropped: dropping them
would bias the rest of the premium curve.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from constants import (
    HEATMAP_YEARS,
    LOW_FLOOR_MAX,
    PROJECT_FLOOR_BANDS,
    PROJECT_FLOOR_LOOKBACK_MONTHS,
    THIN_BAND_THRESHOLD,
)
from services.valuation.bands import find_band, floor_in_band, parse_floor_band
from services.valuation.dates import NowLike, window_cutoff
from services.valuation.models import (
    FloorBand,
    FloorPremiumTable,
    FloorYearHeatmap,
    HeatmapCell,
    Transaction,
)
from utils.rounding import round_half_up

logger = logging.getLogger('valuation.floor_premium')

BASELINE_LOW_FLOOR = 'low_floor'
BASELINE_PROJECT_AVG = 'project_avg'
BASELINE_FILTERED = 'filtered'

EMPTY_TABLE = FloorPremiumTable(floors=[], thin_bands=[], baseline_source='')


def premium_percent(psf: float, baseline_psf: float) -> float:
    """(psf / baseline - 1) * 100, one decimal; 0 when there is no baseline."""
    if not baseline_psf or baseline_psf <= 0:
        return 0.0
    return round_half_up((psf / baseline_psf - 1) * 100, 1)


def _average(values: List[float]) -> int:
    return round_half_up(sum(values) / len(values))


def _band_values(transactions: Iterable[Transaction], bands: Sequence[str]) -> Dict[str, List[float]]:
    """PSF values per band; each transaction lands in the first band that contains it."""
    by_band: Dict[str, List[float]] = {band: [] for band in bands}
    for tx in transactions:
        band = find_band(tx.floor_mid, bands)
        if band is not None:
            by_band[band].append(tx.psf)
    return by_band


def _build_bands(by_band: Dict[str, List[float]], bands: Sequence[str], baseline_psf=None) -> List[FloorBand]:
    populated = [(band, by_band[band]) for band in bands if by_band.get(band)]
    if not populated:
        return []
    averages = [(band, _average(values), len(values)) for band, values in populated]
    if baseline_psf is None:
        baseline_psf = averages[0][1]
    return [
        FloorBand(
            range=band,
            psf=psf,
            count=count,
            is_thin=count < THIN_BAND_THRESHOLD,
            premium_percent=premium_percent(psf, baseline_psf),
        )
        for band, psf, count in averages
    ]


def compute_floor_premiums(
    transactions: Iterable[Transaction],
    floor_ranges: Sequence[str],
) -> FloorPremiumTable:
    """
    Per-band average PSF with premium relative to the first populated band.

    Args:
        transactions: Filtered working set
        floor_ranges: Band labels in ascending floor order ("01-05", ...)
    """
    txs = list(transactions)
    if not floor_ranges or not txs:
        return EMPTY_TABLE

    floors = _build_bands(_band_values(txs, floor_ranges), floor_ranges)
    return FloorPremiumTable(
        floors=floors,
        thin_bands=[f.range for f in floors if f.is_thin],
        baseline_source=BASELINE_FILTERED if floors else '',
    )


def compute_project_floor_premiums(
    transactions: Iterable[Transaction],
    now: NowLike = None,
    bands: Sequence[str] = PROJECT_FLOOR_BANDS,
) -> FloorPremiumTable:
    """
    Unfiltered project floor table.

    Source is the last 12 months when it holds 3+ floored transactions,
    else all transactions. Baseline is the floors 1-5 average when that
    band has 3+ transactions, else the source's overall average PSF.
    """
    txs = list(transactions)
    if not txs:
        return EMPTY_TABLE

    cutoff = window_cutoff(PROJECT_FLOOR_LOOKBACK_MONTHS, now)
    recent = [t for t in txs if t.date >= cutoff]
    if len([t for t in recent if t.floor_mid]) >= THIN_BAND_THRESHOLD:
        source, floor_period = recent, '12M'
    else:
        source, floor_period = txs, 'all'

    low_floor = [t.psf for t in source if floor_in_band(t.floor_mid, 1, LOW_FLOOR_MAX)]
    if len(low_floor) >= THIN_BAND_THRESHOLD:
        baseline_psf, baseline_source = _average(low_floor), BASELINE_LOW_FLOOR
    else:
        baseline_psf, baseline_source = _average([t.psf for t in source]), BASELINE_PROJECT_AVG

    floors = _build_bands(_band_values(source, bands), bands, baseline_psf=baseline_psf)
    logger.debug(
        f"Project floor table: {len(floors)} bands, baseline={baseline_source} "
        f"({baseline_psf}), period={floor_period}"
    )
    return FloorPremiumTable(
        floors=floors,
        thin_bands=[f.range for f in floors if f.is_thin],
        baseline_source=baseline_source,
        floor_period=floor_period,
    )


def find_premium(floor_bands: Sequence[FloorBand], floor_mid: Optional[float]) -> float:
    """Premium of the band containing floor_mid; 0 when no band contains it."""
    for band in floor_bands:
        lo, hi = parse_floor_band(band.range)
        if floor_in_band(floor_mid, lo, hi):
            return band.premium_percent
    return 0.0


def floor_year_heatmap(
    transactions: Iterable[Transaction],
    floor_bands: Sequence[str],
    years: Optional[Sequence[str]] = None,
) -> FloorYearHeatmap:
    """
    Average PSF / volume / price per (floor band, year) cell.

    Cells with no transactions are absent from the matrix. Years default
    to the last 7 distinct years in the data.
    """
    txs = list(transactions)
    if years is None:
        years = sorted({str(t.year) for t in txs})[-HEATMAP_YEARS:]
    years = [str(y) for y in years]
    if not txs or not floor_bands:
        return FloorYearHeatmap(matrix={}, years=years, floors=list(floor_bands))

    df = pd.DataFrame({
        'band': [find_band(t.floor_mid, floor_bands) for t in txs],
        'year': [str(t.year) for t in txs],
        'psf': [t.psf for t in txs],
        'price': [t.price for t in txs],
    })
    df = df[df['band'].notna() & df['year'].isin(years)]

    matrix: Dict[str, HeatmapCell] = {}
    if not df.empty:
        grouped = df.groupby(['band', 'year']).agg(
            psf=('psf', 'mean'),
            volume=('psf', 'count'),
            price=('price', 'mean'),
        )
        for (band, year), row in grouped.iterrows():
            matrix[f"{band}-{year}"] = HeatmapCell(
                psf=round_half_up(row['psf']),
                volume=int(row['volume']),
                price=round_half_up(row['price']),
            )

    return FloorYearHeatmap(matrix=matrix, years=years, floors=list(floor_bands))
