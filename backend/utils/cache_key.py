"""
Cache key helpers.

Provides stable, normalized cache key construction for memoized
valuation queries. A key is (operation prefix, transaction-set version,
normalized params), so two callers asking the same question of the same
data always land on the same entry.
"""

from datetime import date, datetime
import hashlib
import json
from typing import Any, Dict, Iterable, Optional


def _normalize_cache_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_normalize_cache_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _normalize_cache_value(v) for k, v in sorted(value.items())}
    if isinstance(value, float) and value.is_integer():
        # 900 and 900.0 are the same target size
        return int(value)
    return value


def normalize_cache_params(
    params: Dict[str, Any],
    *,
    include_keys: Optional[Iterable[str]] = None,
) -> Dict[str, Any]:
    """
    Normalize params for cache keys.

    - Skips empty values
    - Sorts keys for stability
    - Normalizes dates, tuples and nested structures
    """
    allowed = set(include_keys) if include_keys is not None else None
    filtered: Dict[str, Any] = {}
    for key, value in params.items():
        if allowed is not None and key not in allowed:
            continue
        if value is None or (isinstance(value, (str, list, tuple, dict)) and len(value) == 0):
            continue
        filtered[key] = _normalize_cache_value(value)
    return {k: filtered[k] for k in sorted(filtered.keys())}


def build_json_cache_key(
    prefix: str,
    params: Dict[str, Any],
    *,
    include_keys: Optional[Iterable[str]] = None
) -> str:
    normalized = normalize_cache_params(params, include_keys=include_keys)
    return f"{prefix}:{json.dumps(normalized, sort_keys=True)}"


def fingerprint_records(records: Iterable[Dict[str, Any]]) -> str:
    """
    Stable SHA-1 fingerprint of a record set (order-sensitive).

    Used as the transaction-set version in valuation cache keys.
    """
    digest = hashlib.sha1()
    for record in records:
        normalized = _normalize_cache_value(record)
        digest.update(json.dumps(normalized, sort_keys=True, default=str).encode('utf-8'))
        digest.update(b'\n')
    return digest.hexdigest()
