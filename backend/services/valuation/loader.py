"""
Transaction Loader - converts upstream rows into engine Transactions.

The data-access layer hands the engine either dict rows in the
dashboard's wire shape or a pandas DataFrame of the same columns:

    date, year?, price, area, psf?, floorMid?, floorRange?,
    saleType? (or type), tenure?, beds?

Derived fields:
- date is canonicalized to "YYYY-MM"
- year defaults to the date's year
- psf defaults to price / area, rounded half up
- floorMid defaults to the midpoint of floorRange ("11 to 15" -> 13)

Rows without a positive area or PSF are dropped here so the engine never
sees them. A malformed date is a contract violation and raises.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from constants import normalize_sale_type
from services.valuation.bands import band_midpoint
from services.valuation.models import Transaction
from utils.normalize import ValidationError, to_float, to_str, to_year_month
from utils.rounding import round_half_up

logger = logging.getLogger('valuation.loader')


def _pick(row: Dict[str, Any], *keys):
    for key in keys:
        value = row.get(key)
        if value is None:
            continue
        if isinstance(value, float) and pd.isna(value):
            continue
        return value
    return None


def _floor_mid(row: Dict[str, Any], floor_range: Optional[str]) -> Optional[float]:
    floor_mid = to_float(_pick(row, 'floorMid', 'floor_mid'), field='floorMid')
    if floor_mid is not None:
        return floor_mid
    if not floor_range:
        return None
    try:
        return band_midpoint(floor_range)
    except ValidationError:
        # Labels like "B1 to B5" carry no usable midpoint
        return None


def transaction_from_record(row: Dict[str, Any]) -> Optional[Transaction]:
    """Build one Transaction, or None when the row has no usable PSF/area."""
    year, month = to_year_month(_pick(row, 'date', 'month'), field='date')
    price = to_float(_pick(row, 'price'), default=0.0, field='price')
    area = to_float(_pick(row, 'area', 'area_sqft'), default=0.0, field='area')
    psf = to_float(_pick(row, 'psf'), field='psf')
    if psf is None and area > 0:
        psf = round_half_up(price / area)

    if not area or area <= 0 or not psf or psf <= 0:
        return None

    floor_range = to_str(_pick(row, 'floorRange', 'floor_range', 'floor_level'))
    raw_sale_type = _pick(row, 'saleType', 'sale_type', 'type')

    return Transaction(
        date=f"{year:04d}-{month:02d}",
        year=to_str(_pick(row, 'year'), default=str(year)),
        price=price,
        area=area,
        psf=psf,
        floor_mid=_floor_mid(row, floor_range),
        floor_range=floor_range,
        sale_type=normalize_sale_type(raw_sale_type) or to_str(raw_sale_type),
        tenure=to_str(_pick(row, 'tenure')),
        bedrooms=to_str(_pick(row, 'beds', 'bedrooms', 'bedroom_count')),
    )


def transactions_from_records(records: Iterable[Dict[str, Any]]) -> List[Transaction]:
    """
    Convert wire-shape dict rows into Transactions.

    Returns:
        Transactions in input order, unusable rows dropped
    """
    transactions = []
    dropped = 0
    for row in records:
        tx = transaction_from_record(row)
        if tx is None:
            dropped += 1
            continue
        transactions.append(tx)

    if dropped:
        logger.debug(f"Dropped {dropped} rows with missing area or PSF")
    return transactions


def transactions_from_dataframe(df: pd.DataFrame) -> List[Transaction]:
    """Convert a DataFrame (one row per sale) into Transactions."""
    if df is None or df.empty:
        return []
    frame = df.copy()
    if 'date' in frame.columns and pd.api.types.is_datetime64_any_dtype(frame['date']):
        frame['date'] = frame['date'].dt.strftime('%Y-%m')
    frame = frame.astype(object).where(pd.notna(frame), None)
    return transactions_from_records(frame.to_dict('records'))
