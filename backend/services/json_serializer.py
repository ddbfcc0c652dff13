"""
JSON Serialization Helper - Converts valuation results, pandas and numpy values to JSON-compatible formats
"""

import json
from datetime import datetime, date
from enum import Enum
import pandas as pd
import numpy as np


def serialize_for_json(obj):
    """
    Recursively convert non-JSON-serializable objects to native types.

    Handles:
    - valuation dataclasses -> their camelCase to_dict()
    - Enum -> name
    - pandas Timestamp / datetime / date -> ISO format string
    - numpy types -> Python native types
    - NaN -> None
    - dict/list -> recursively process
    """
    if hasattr(obj, 'to_dict') and not isinstance(obj, (pd.DataFrame, pd.Series)):
        return serialize_for_json(obj.to_dict())
    if isinstance(obj, Enum):
        return obj.name
    if isinstance(obj, (pd.Timestamp, datetime)):
        return obj.isoformat()
    elif isinstance(obj, date):
        return obj.isoformat()
    elif isinstance(obj, (np.integer, np.floating)):
        return serialize_for_json(obj.item())
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, pd.DataFrame):
        return serialize_for_json(obj.to_dict('records'))
    elif isinstance(obj, dict):
        return {key: serialize_for_json(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [serialize_for_json(item) for item in obj]
    elif isinstance(obj, float) and pd.isna(obj):
        return None
    else:
        return obj


def safe_json_dumps(obj):
    """Safely convert object to JSON string, handling dataclasses and pandas/numpy types"""
    serialized = serialize_for_json(obj)
    return json.dumps(serialized, default=str)
