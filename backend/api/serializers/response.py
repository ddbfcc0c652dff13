"""
Response envelope helpers.

Provides standardized success and error response builders for the
valuation endpoints. Payloads are passed through serialize_for_json so
dataclasses, numpy scalars and NaN never reach jsonify.
"""

from typing import Any, Dict, List, Optional
from flask import g

from services.json_serializer import serialize_for_json


def success_envelope(
    data: Any,
    meta: Optional[Dict[str, Any]] = None,
    warnings: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Build a standardized success response envelope.

    Args:
        data: Response data (valuation result, list or None)
        meta: Optional metadata dict
        warnings: Optional list of warning messages

    Returns:
        Response dict with standard structure:
        {
            "data": ...,
            "meta": {...},
            "warnings": [...]  # if any
        }
    """
    response = {"data": serialize_for_json(data)}

    if meta is None:
        meta = {}

    # Always include request ID if available
    if hasattr(g, 'request_id'):
        meta['requestId'] = g.request_id

    response['meta'] = serialize_for_json(meta)

    if warnings:
        response['warnings'] = warnings

    return response


def error_envelope(
    code: str,
    message: str,
    field: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    hint: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a standardized error response envelope.

    Returns:
        Error response dict:
        {
            "error": {
                "code": "...",
                "message": "...",
                "requestId": "...",
                ...
            }
        }
    """
    error = {
        "code": code,
        "message": message,
    }

    if hasattr(g, 'request_id'):
        error['requestId'] = g.request_id

    if field:
        error['field'] = field
    if details:
        error['details'] = details
    if hint:
        error['hint'] = hint

    return {"error": error}
