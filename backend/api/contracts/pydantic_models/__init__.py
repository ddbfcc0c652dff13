"""
Pydantic models for API param validation.

Key features:
- Frozen models (immutable after normalization)
- Auto type coercion with clear error messages
- Alias support for the dashboard's camelCase keys

Usage:
    from api.contracts.pydantic_models import ValuationParams

    params = ValuationParams(**request.get_json())
    spec = params.filters.to_filter_spec()
"""

from .base import BaseParamsModel
from .valuation import ValuationParams, ValuationFiltersParams

__all__ = [
    'BaseParamsModel',
    'ValuationParams',
    'ValuationFiltersParams',
]
