"""
Valuation Data Models - Plain data contracts for the CMA engine.

Every structure here is produced fresh by a pure function and never
mutated afterwards. `to_dict()` emits the camelCase shape the dashboard
renders, so the HTTP adapter can serialize results without knowing the
engine internals.

Optional fields are explicit: `None` always means "not computable"
(e.g. floor_match_count is None when no target floor was given), never
"forgot to set".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from constants import FILTER_ALL, THIN_BAND_THRESHOLD


# =============================================================================
# TRANSACTIONS & FILTERS
# =============================================================================

@dataclass(frozen=True)
class Transaction:
    """One historical sale. Immutable fact; the engine never mutates it."""
    date: str                           # "YYYY-MM", lexically sortable
    year: str
    price: float
    area: float                         # sqft, positive
    psf: float                          # price / area
    floor_mid: Optional[float] = None   # midpoint of floor range
    floor_range: Optional[str] = None   # e.g. "11 to 15"
    sale_type: Optional[str] = None
    tenure: Optional[str] = None
    bedrooms: Optional[str] = None      # slash-delimited, e.g. "2/3"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'year': self.year,
            'price': self.price,
            'area': self.area,
            'psf': self.psf,
            'floorMid': self.floor_mid,
            'floorRange': self.floor_range,
            'saleType': self.sale_type,
            'tenure': self.tenure,
            'beds': self.bedrooms,
        }


@dataclass(frozen=True)
class FilterSpec:
    """
    Master filter for a project's transactions.

    'all' (or None for years) disables a predicate. A FilterSpec where every
    predicate is disabled reports has_filters = False, which lets the
    engine reuse unfiltered project aggregates.
    """
    beds: str = FILTER_ALL
    year_from: Optional[str] = None
    year_to: Optional[str] = None
    sale_type: str = FILTER_ALL
    tenure: str = FILTER_ALL
    floor_band: str = FILTER_ALL

    @property
    def has_filters(self) -> bool:
        return (
            self.beds != FILTER_ALL
            or bool(self.year_from)
            or bool(self.year_to)
            or self.sale_type != FILTER_ALL
            or self.tenure != FILTER_ALL
            or self.floor_band != FILTER_ALL
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'FilterSpec':
        """Build from the dashboard's filter shape (camelCase or snake_case)."""
        if not data:
            return cls()

        def pick(*keys):
            for key in keys:
                value = data.get(key)
                if value is not None and str(value).strip() != '':
                    return str(value).strip()
            return None

        return cls(
            beds=pick('beds', 'bedrooms') or FILTER_ALL,
            year_from=pick('yearFrom', 'year_from'),
            year_to=pick('yearTo', 'year_to'),
            sale_type=pick('saleType', 'sale_type') or FILTER_ALL,
            tenure=pick('tenure') or FILTER_ALL,
            floor_band=pick('floorBand', 'floor_band', 'floor') or FILTER_ALL,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'beds': self.beds,
            'yearFrom': self.year_from,
            'yearTo': self.year_to,
            'saleType': self.sale_type,
            'tenure': self.tenure,
            'floorBand': self.floor_band,
        }


@dataclass(frozen=True)
class TimeWindows:
    """Rolling windows; m12 contains m6 contains m3 by construction."""
    m3: List[Transaction]
    m6: List[Transaction]
    m12: List[Transaction]

    def get(self, period: str) -> List[Transaction]:
        return {'3M': self.m3, '6M': self.m6, '12M': self.m12}[period]


# =============================================================================
# TIERS
# =============================================================================

class Tier(Enum):
    """Matching strategies, ordered least to most specific."""
    PROJECT_AVG = 1
    SIZE_MATCH = 2
    FLOOR_MATCH = 3
    EXACT_MATCH = 4

    @property
    def label(self) -> str:
        return self.name.replace('_', ' ')


@dataclass(frozen=True)
class TierResult:
    """
    Average PSF for one tier in one window.

    psf == 0 and count == 0 is the "no data" sentinel, distinct from a
    real price.
    """
    psf: int
    count: int
    transactions: List[Transaction] = field(default_factory=list)  # date-descending

    @property
    def has_data(self) -> bool:
        return self.count > 0 and self.psf > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'psf': self.psf,
            'count': self.count,
            'transactions': [t.to_dict() for t in self.transactions],
        }


@dataclass(frozen=True)
class TierEstimate:
    tier: Tier
    m3: TierResult
    m6: TierResult
    m12: TierResult

    def window(self, period: str) -> TierResult:
        return {'3M': self.m3, '6M': self.m6, '12M': self.m12}[period]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.tier.value,
            'tier': self.tier.name,
            'label': self.tier.label,
            'm3': self.m3.to_dict(),
            'm6': self.m6.to_dict(),
            'm12': self.m12.to_dict(),
        }


@dataclass(frozen=True)
class TimeAdjustment:
    """
    A PSF projected to "today".

    rate_used is None when growth is indeterminate: the PSF was left
    unchanged because the rate is unknown, not because growth is zero.
    """
    adjusted_psf: float
    months_elapsed: int
    rate_used: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'adjustedPsf': self.adjusted_psf,
            'monthsElapsed': self.months_elapsed,
            'rateUsed': self.rate_used,
        }


@dataclass(frozen=True)
class BestEstimate:
    tier: Tier
    period: str
    psf: int
    count: int
    transactions: List[Transaction]
    estimated_price: float
    adjustment: TimeAdjustment

    @property
    def adjusted_psf(self) -> float:
        return self.adjustment.adjusted_psf or self.psf

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tier': self.tier.name,
            'label': self.tier.label,
            'period': self.period,
            'psf': self.psf,
            'count': self.count,
            'estimatedPrice': self.estimated_price,
            'adjustedPsf': self.adjusted_psf,
            'adjustment': self.adjustment.to_dict(),
        }


# =============================================================================
# GROWTH
# =============================================================================

@dataclass(frozen=True)
class YearBucket:
    year: str
    average_psf: Optional[int]
    count: int

    @property
    def low_confidence(self) -> bool:
        return self.count < THIN_BAND_THRESHOLD

    def to_dict(self) -> Dict[str, Any]:
        return {
            'year': self.year,
            'averagePsf': self.average_psf,
            'count': self.count,
            'lowConfidence': self.low_confidence,
        }


@dataclass(frozen=True)
class CAGRResult:
    start_year: Optional[str]
    end_year: Optional[str]
    start_avg: Optional[int]
    end_avg: Optional[int]
    start_n: int
    end_n: int
    total_count: int
    cagr_percent: Optional[float]
    low_confidence: bool
    annual_series: List[YearBucket] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'startYear': self.start_year,
            'endYear': self.end_year,
            'startAvg': self.start_avg,
            'endAvg': self.end_avg,
            'startN': self.start_n,
            'endN': self.end_n,
            'totalN': self.total_count,
            'cagr': self.cagr_percent,
            'lowConfidence': self.low_confidence,
            'annualSeries': [b.to_dict() for b in self.annual_series],
        }


# =============================================================================
# FLOOR PREMIUM
# =============================================================================

@dataclass(frozen=True)
class FloorBand:
    range: str                  # "lo-hi"
    psf: int
    count: int
    is_thin: bool
    premium_percent: float      # vs baseline band, 1 decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'range': self.range,
            'psf': self.psf,
            'count': self.count,
            'thin': self.is_thin,
            'premium': self.premium_percent,
        }


@dataclass(frozen=True)
class FloorPremiumTable:
    floors: List[FloorBand]
    thin_bands: List[str]
    baseline_source: str        # 'low_floor' | 'project_avg' | 'filtered' | ''
    floor_period: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'floors': [f.to_dict() for f in self.floors],
            'thinBands': list(self.thin_bands),
            'baselineSource': self.baseline_source,
            'floorPeriod': self.floor_period,
        }


@dataclass(frozen=True)
class HeatmapCell:
    psf: int
    volume: int
    price: int

    def to_dict(self) -> Dict[str, Any]:
        return {'psf': self.psf, 'vol': self.volume, 'price': self.price}


@dataclass(frozen=True)
class FloorYearHeatmap:
    matrix: Dict[str, HeatmapCell]     # key: "<band>-<year>"
    years: List[str]
    floors: List[str]

    def cell(self, band: str, year: str) -> Optional[HeatmapCell]:
        return self.matrix.get(f"{band}-{year}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'matrix': {k: v.to_dict() for k, v in self.matrix.items()},
            'years': list(self.years),
            'floors': list(self.floors),
        }


# =============================================================================
# CMA
# =============================================================================

@dataclass(frozen=True)
class ScoredTransaction:
    """A transaction plus its similarity weights; lives for one scoring call."""
    transaction: Transaction
    weight: float
    adjusted_psf: int
    months_ago: int
    size_delta: float
    recency_weight: float
    size_weight: float
    floor_weight: float

    @property
    def date(self) -> str:
        return self.transaction.date

    @property
    def psf(self) -> float:
        return self.transaction.psf

    @property
    def area(self) -> float:
        return self.transaction.area

    @property
    def floor_mid(self) -> Optional[float]:
        return self.transaction.floor_mid

    def to_dict(self) -> Dict[str, Any]:
        data = self.transaction.to_dict()
        data.update({
            'weight': self.weight,
            'adjustedPsf': self.adjusted_psf,
            'monthsAgo': self.months_ago,
            'sizeDelta': self.size_delta,
            'recencyWeight': self.recency_weight,
            'sizeWeight': self.size_weight,
            'floorWeight': self.floor_weight,
        })
        return data


@dataclass(frozen=True)
class ValuationModel:
    estimated_psf: int
    low_psf: int
    high_psf: int
    std_dev_psf: int
    top_comparables: List[ScoredTransaction]
    total_count: int
    recent_6mo_count: int
    recent_12mo_count: int
    size_match_count: int
    floor_match_count: Optional[int]    # None when no target floor was given
    confidence: int                     # 0-100
    cagr_used: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'estimatedPsf': self.estimated_psf,
            'lowPsf': self.low_psf,
            'highPsf': self.high_psf,
            'stdDevPsf': self.std_dev_psf,
            'topComparables': [c.to_dict() for c in self.top_comparables],
            'totalCount': self.total_count,
            'recent6moCount': self.recent_6mo_count,
            'recent12moCount': self.recent_12mo_count,
            'sizeMatchCount': self.size_match_count,
            'floorMatchCount': self.floor_match_count,
            'confidence': self.confidence,
            'cagrUsed': self.cagr_used,
        }
