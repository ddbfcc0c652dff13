"""
Pydantic models for Valuation endpoints.

Endpoints:
- valuation/model
- valuation/tiers
- valuation/cagr
- valuation/floor-premiums

All four share one request body; each endpoint reads the fields it needs.
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator

from config import Config
from constants import FILTER_ALL
from services.valuation.bands import parse_floor_band
from services.valuation.models import FilterSpec

from .base import BaseParamsModel
from .types import CoercedDate, CoercedFloat, FilterValue, YearStr


class ValuationFiltersParams(BaseParamsModel):
    """Master filter as sent by the dashboard."""

    beds: FilterValue = Field(
        default=None,
        validation_alias=AliasChoices('beds', 'bedrooms'),
        description="Bedroom count, e.g. '3'",
    )
    year_from: YearStr = Field(
        default=None,
        validation_alias=AliasChoices('yearFrom', 'year_from'),
    )
    year_to: YearStr = Field(
        default=None,
        validation_alias=AliasChoices('yearTo', 'year_to'),
    )
    sale_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('saleType', 'sale_type'),
    )
    tenure: FilterValue = Field(default=None)
    floor_band: FilterValue = Field(
        default=None,
        validation_alias=AliasChoices('floorBand', 'floor_band', 'floor'),
        description="Master filter floor band, e.g. '11-15' or '31+'",
    )

    @field_validator('floor_band')
    @classmethod
    def validate_floor_band(cls, v):
        if v is not None:
            parse_floor_band(v)
        return v

    def to_filter_spec(self) -> FilterSpec:
        return FilterSpec(
            beds=self.beds or FILTER_ALL,
            year_from=self.year_from,
            year_to=self.year_to,
            sale_type=self.sale_type or FILTER_ALL,
            tenure=self.tenure or FILTER_ALL,
            floor_band=self.floor_band or FILTER_ALL,
        )


class ValuationParams(BaseParamsModel):
    """Params for /valuation/* endpoints."""

    transactions: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Project transactions in wire shape (date, price, area, ...)",
    )
    filters: ValuationFiltersParams = Field(default_factory=ValuationFiltersParams)
    target_size: CoercedFloat = Field(
        default=None,
        validation_alias=AliasChoices('targetSize', 'target_size'),
        description="Target unit size in sqft",
    )
    target_floor: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices('targetFloor', 'target_floor'),
        description="Target floor band, e.g. '11-15'",
    )
    start_year: YearStr = Field(
        default=None,
        validation_alias=AliasChoices('startYear', 'start_year'),
    )
    end_year: YearStr = Field(
        default=None,
        validation_alias=AliasChoices('endYear', 'end_year'),
    )
    now: CoercedDate = Field(
        default=None,
        description="Reference date (YYYY-MM-DD); defaults to today",
    )

    @field_validator('transactions')
    @classmethod
    def limit_transactions(cls, v):
        if len(v) > Config.MAX_TRANSACTIONS_PER_REQUEST:
            raise ValueError(
                f"At most {Config.MAX_TRANSACTIONS_PER_REQUEST} transactions per request, got {len(v)}"
            )
        return v

    @field_validator('target_size')
    @classmethod
    def positive_target_size(cls, v):
        if v is not None and v <= 0:
            raise ValueError(f"targetSize must be positive, got {v}")
        return v

    @field_validator('target_floor', mode='before')
    @classmethod
    def validate_target_floor(cls, v):
        if v is None or str(v).strip() == '' or str(v).strip().lower() == FILTER_ALL:
            return None
        parse_floor_band(str(v))
        return str(v).strip()
