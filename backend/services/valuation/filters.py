"""
Transaction Filter - master filter applied before every valuation stage.

Predicates are independent and conjunctive (AND). Each one is skipped
when its FilterSpec field is 'all' (or empty for years). Pure: the
input list is never modified.

Usage:
    from services.valuation.filters import filter_transactions
    from services.valuation.models import FilterSpec

    txs = filter_transactions(all_txs, FilterSpec(beds='3', floor_band='11-15'))
"""

import logging
from typing import Callable, Iterable, List, Optional

from constants import FILTER_ALL, FLOOR_FILTER_BANDS, normalize_sale_type
from services.valuation.bands import floor_in_band, parse_floor_band
from services.valuation.models import FilterSpec, Transaction

logger = logging.getLogger('valuation.filters')


def matches_bedrooms(tx: Transaction, beds: str) -> bool:
    """Bedroom field is a slash-delimited list ("2/3"); match any entry."""
    if not tx.bedrooms:
        return False
    return str(beds) in [b.strip() for b in str(tx.bedrooms).split('/')]


def matches_floor_band(tx: Transaction, band: str) -> bool:
    """Match floor_mid against a master filter band ('01-05' ... '31+')."""
    if band == FILTER_ALL:
        return True
    bounds = FLOOR_FILTER_BANDS.get(band)
    if bounds is None:
        bounds = parse_floor_band(band)
    lo, hi = bounds
    return floor_in_band(tx.floor_mid, lo, hi)


def _build_predicates(spec: FilterSpec) -> List[Callable[[Transaction], bool]]:
    predicates = []
    if spec.beds != FILTER_ALL:
        predicates.append(lambda t: matches_bedrooms(t, spec.beds))
    if spec.year_from:
        predicates.append(lambda t: str(t.year) >= str(spec.year_from))
    if spec.year_to:
        predicates.append(lambda t: str(t.year) <= str(spec.year_to))
    if spec.sale_type != FILTER_ALL:
        sale_type = normalize_sale_type(spec.sale_type) or spec.sale_type
        predicates.append(lambda t: t.sale_type == sale_type)
    if spec.tenure != FILTER_ALL:
        predicates.append(lambda t: t.tenure == spec.tenure)
    if spec.floor_band != FILTER_ALL:
        # Validate the label once, up front
        if spec.floor_band not in FLOOR_FILTER_BANDS:
            parse_floor_band(spec.floor_band)
        predicates.append(lambda t: matches_floor_band(t, spec.floor_band))
    return predicates


def filter_transactions(
    transactions: Iterable[Transaction],
    spec: Optional[FilterSpec] = None,
) -> List[Transaction]:
    """
    Apply the master filter.

    Args:
        transactions: Project transactions (any order)
        spec: Filter configuration; None means no filters

    Returns:
        New list with the matching transactions, input order preserved
    """
    txs = list(transactions)
    if spec is None or not spec.has_filters:
        return txs

    for predicate in _build_predicates(spec):
        txs = [t for t in txs if predicate(t)]

    logger.debug(f"Master filter {spec.to_dict()} kept {len(txs)} transactions")
    return txs
