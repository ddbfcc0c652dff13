"""
Tests for JSON serialization of valuation results.
"""

import json
from datetime import date

import numpy as np
import pandas as pd

from services.json_serializer import safe_json_dumps, serialize_for_json
from services.valuation.models import Tier, TierResult


class TestSerializeForJson:

    def test_dataclass_uses_to_dict(self):
        result = TierResult(psf=1800, count=0, transactions=[])
        assert serialize_for_json(result) == {'psf': 1800, 'count': 0, 'transactions': []}

    def test_enum_is_name(self):
        assert serialize_for_json({'tier': Tier.EXACT_MATCH}) == {'tier': 'EXACT_MATCH'}

    def test_numpy_and_nan(self):
        data = {'n': np.int64(3), 'x': np.float64(1.5), 'missing': float('nan'), 'arr': np.array([1, 2])}
        assert serialize_for_json(data) == {'n': 3, 'x': 1.5, 'missing': None, 'arr': [1, 2]}

    def test_dates_and_frames(self):
        df = pd.DataFrame({'year': ['2024'], 'psf': [np.float64(1800.0)]})
        assert serialize_for_json(date(2025, 6, 15)) == '2025-06-15'
        assert serialize_for_json(df) == [{'year': '2024', 'psf': 1800.0}]

    def test_safe_json_dumps(self):
        payload = json.loads(safe_json_dumps({'tiers': (Tier.PROJECT_AVG,), 'when': pd.Timestamp('2025-06-15')}))
        assert payload == {'tiers': ['PROJECT_AVG'], 'when': '2025-06-15T00:00:00'}
