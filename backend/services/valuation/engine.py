"""
Valuation Engine - query facade over one project's transactions.

Wires the pure valuation stages together:

    transactions -> filter -> {windows -> tiers; CAGR -> time adjust;
                               floor premiums} -> CMA scorer

Every public method is a pure query of (transaction set, filters, target
unit, current month). Results are memoized in a bounded LRU cache keyed
on exactly those inputs; the transaction set is identified by a SHA-1
fingerprint, so a new data set never sees stale entries.

Usage:
    from services.valuation.engine import ValuationEngine
    from services.valuation.loader import transactions_from_records

    engine = ValuationEngine(transactions_from_records(rows))
    model = engine.valuation_model(target_size=900, target_floor='11-15',
                                   filters={'beds': '3'})
    if model is None:
        ...  # not enough comparables
"""

import logging
from dataclasses import fields, is_dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from config import Config
from constants import PROJECT_FLOOR_BANDS
from services.valuation.bands import band_midpoint, parse_floor_band
from services.valuation.cache import LRUCache
from services.valuation.cma import compute_valuation_model
from services.valuation.dates import NowLike, format_year_month, resolve_now
from services.valuation.filters import filter_transactions
from services.valuation.floor_premium import (
    compute_floor_premiums,
    compute_project_floor_premiums,
    floor_year_heatmap,
)
from services.valuation.growth import compute_bucket_cagr, time_adjust
from services.valuation.models import (
    BestEstimate,
    CAGRResult,
    FilterSpec,
    FloorPremiumTable,
    FloorYearHeatmap,
    TierEstimate,
    TimeAdjustment,
    TimeWindows,
    Transaction,
    ValuationModel,
)
from services.valuation.tiers import (
    build_tier_estimates,
    default_target_size,
    project_size_options,
    select_best_estimate,
)
from services.valuation.windows import partition_windows
from utils.cache_key import build_json_cache_key, fingerprint_records
from utils.normalize import ValidationError, to_positive_float

logger = logging.getLogger('valuation')

FiltersLike = Optional[Union[FilterSpec, Dict[str, Any]]]


def _detached(value: Any) -> Any:
    """Copy of a cached result whose lists and dicts the caller may mutate."""
    if isinstance(value, list):
        return [_detached(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_detached(v) for v in value)
    if isinstance(value, dict):
        return {k: _detached(v) for k, v in value.items()}
    if is_dataclass(value) and not isinstance(value, type):
        changes = {
            f.name: _detached(getattr(value, f.name))
            for f in fields(value)
            if isinstance(getattr(value, f.name), (list, dict)) or is_dataclass(getattr(value, f.name))
        }
        return replace(value, **changes) if changes else value
    return value


def _as_filter_spec(filters: FiltersLike) -> FilterSpec:
    if filters is None:
        return FilterSpec()
    if isinstance(filters, FilterSpec):
        return filters
    if isinstance(filters, dict):
        return FilterSpec.from_dict(filters)
    raise ValidationError(
        f"filters must be a FilterSpec or dict, got {type(filters).__name__}",
        field='filters',
        received_value=filters,
    )


class ValuationEngine:
    """
    Memoized valuation queries for one transaction set.

    Args:
        transactions: Cleaned project transactions
        now: Fixed reference date; None follows the wall clock
        cache_size: LRU capacity (default Config.VALUATION_CACHE_SIZE)
        min_comparables: CMA minimum (default Config.VALUATION_MIN_COMPARABLES)
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        now: NowLike = None,
        cache_size: Optional[int] = None,
        min_comparables: Optional[int] = None,
    ):
        self._transactions: List[Transaction] = list(transactions)
        self._now = now
        self._min_comparables = min_comparables or Config.VALUATION_MIN_COMPARABLES
        self._cache = LRUCache(maxsize=cache_size or Config.VALUATION_CACHE_SIZE)
        self.version = fingerprint_records(t.to_dict() for t in self._transactions)
        logger.info(f"Valuation engine ready: {len(self._transactions)} transactions, version={self.version[:12]}")

    # =========================================================================
    # CACHE
    # =========================================================================

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    def now(self):
        return resolve_now(self._now)

    def _memo(self, operation: str, params: Dict[str, Any], compute: Callable[[], Any]) -> Any:
        key = build_json_cache_key(operation, {
            'version': self.version,
            'month': format_year_month(self.now()),
            **params,
        })
        if key in self._cache:
            logger.debug(f"Cache hit: {operation}")
        return _detached(self._cache.get_or_compute(key, compute))

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Valuation cache cleared")

    def cache_stats(self) -> Dict[str, Any]:
        return self._cache.stats()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def filtered_transactions(self, filters: FiltersLike = None) -> List[Transaction]:
        spec = _as_filter_spec(filters)
        result = self._memo(
            'filtered',
            {'filters': spec.to_dict()},
            lambda: tuple(filter_transactions(self._transactions, spec)),
        )
        return list(result)

    def time_windows(self, filters: FiltersLike = None) -> TimeWindows:
        spec = _as_filter_spec(filters)
        return self._memo(
            'windows',
            {'filters': spec.to_dict()},
            lambda: partition_windows(self.filtered_transactions(spec), self.now()),
        )

    def size_options(self) -> List[float]:
        """Standard unit sizes of the whole project (filters do not apply)."""
        return list(self._memo('size_options', {}, lambda: tuple(project_size_options(self._transactions))))

    def tier_estimates(
        self,
        target_size: Optional[float] = None,
        target_floor: Optional[str] = None,
        filters: FiltersLike = None,
    ) -> List[TierEstimate]:
        spec = _as_filter_spec(filters)
        result = self._memo(
            'tiers',
            {'filters': spec.to_dict(), 'target_size': target_size, 'target_floor': target_floor},
            lambda: tuple(build_tier_estimates(
                self.time_windows(spec),
                target_size=target_size,
                target_floor=target_floor,
                size_options=self.size_options(),
            )),
        )
        return list(result)

    def best_estimate(
        self,
        target_size: Optional[float] = None,
        target_floor: Optional[str] = None,
        filters: FiltersLike = None,
    ) -> Optional[BestEstimate]:
        spec = _as_filter_spec(filters)
        return self._memo(
            'best_estimate',
            {'filters': spec.to_dict(), 'target_size': target_size, 'target_floor': target_floor},
            lambda: select_best_estimate(
                self.tier_estimates(target_size, target_floor, spec),
                target_size=target_size,
                cagr_percent=self.bucket_cagr(filters=spec).cagr_percent,
                now=self.now(),
            ),
        )

    def bucket_cagr(
        self,
        start_year: Optional[str] = None,
        end_year: Optional[str] = None,
        filters: FiltersLike = None,
    ) -> CAGRResult:
        spec = _as_filter_spec(filters)
        return self._memo(
            'cagr',
            {'filters': spec.to_dict(), 'start_year': start_year, 'end_year': end_year},
            lambda: compute_bucket_cagr(self.filtered_transactions(spec), start_year, end_year),
        )

    def time_adjust(self, psf: float, transaction_date: str, filters: FiltersLike = None) -> TimeAdjustment:
        """Project a PSF to today using the (filtered) project CAGR."""
        cagr = self.bucket_cagr(filters=filters).cagr_percent
        return time_adjust(psf, transaction_date, cagr, self.now())

    def project_floor_premiums(self) -> FloorPremiumTable:
        return self._memo(
            'project_floors',
            {},
            lambda: compute_project_floor_premiums(self._transactions, self.now()),
        )

    def _floor_labels(self) -> List[str]:
        labels = [band.range for band in self.project_floor_premiums().floors]
        return labels or list(PROJECT_FLOOR_BANDS)

    def floor_premiums(self, filters: FiltersLike = None) -> FloorPremiumTable:
        """
        Floor premium table.

        With no active filters the unfiltered project table is reused;
        otherwise bands are recomputed over the filtered set with the
        first populated band as baseline.
        """
        spec = _as_filter_spec(filters)
        if not spec.has_filters:
            return self.project_floor_premiums()
        return self._memo(
            'floors',
            {'filters': spec.to_dict()},
            lambda: compute_floor_premiums(self.filtered_transactions(spec), self._floor_labels()),
        )

    def heatmap(self, filters: FiltersLike = None, years: Optional[List[str]] = None) -> FloorYearHeatmap:
        spec = _as_filter_spec(filters)
        return self._memo(
            'heatmap',
            {'filters': spec.to_dict(), 'years': years},
            lambda: floor_year_heatmap(self.filtered_transactions(spec), self._floor_labels(), years),
        )

    def valuation_model(
        self,
        target_size: Optional[float] = None,
        target_floor: Optional[str] = None,
        filters: FiltersLike = None,
    ) -> Optional[ValuationModel]:
        """
        CMA valuation of a target unit.

        Args:
            target_size: sqft (default: the project's middle size option)
            target_floor: Floor band label such as "11-15"; None for any floor
            filters: Master filter (FilterSpec or dashboard dict)

        Returns:
            ValuationModel, or None when fewer than the minimum comparables
        """
        spec = _as_filter_spec(filters)
        size = to_positive_float(target_size, field='targetSize')
        if size is None:
            size = default_target_size(self.size_options())
        if not size:
            logger.debug("Valuation skipped: project has no size options")
            return None
        if target_floor:
            parse_floor_band(target_floor)

        def compute():
            return compute_valuation_model(
                self.filtered_transactions(spec),
                target_size=size,
                target_floor_mid=band_midpoint(target_floor) if target_floor else None,
                cagr_percent=self.bucket_cagr(filters=spec).cagr_percent,
                floor_bands=self.floor_premiums(spec).floors,
                now=self.now(),
                min_comparables=self._min_comparables,
            )

        return self._memo(
            'valuation',
            {'filters': spec.to_dict(), 'target_size': size, 'target_floor': target_floor},
            compute,
        )
