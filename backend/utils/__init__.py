"""
Utility modules for the backend.
"""
from .normalize import (
    ValidationError,
    to_float,
    to_positive_float,
    to_str,
    to_year_month,
    validation_error_response,
)
from .rounding import round_half_up
from .cache_key import (
    build_json_cache_key,
    fingerprint_records,
    normalize_cache_params,
)

__all__ = [
    'ValidationError',
    'to_float',
    'to_positive_float',
    'to_str',
    'to_year_month',
    'validation_error_response',
    'build_json_cache_key',
    'fingerprint_records',
    'normalize_cache_params',
    'round_half_up',
]
