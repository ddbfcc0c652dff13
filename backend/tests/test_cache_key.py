import json
from datetime import date

from utils.cache_key import build_json_cache_key, fingerprint_records, normalize_cache_params


def test_build_json_cache_key_normalizes_and_sorts():
    params = {
        "b": 2,
        "a": [3, 2],
        "empty": [],
        "nested": {"y": 2, "x": 1},
        "when": date(2024, 1, 2),
    }
    expected_payload = {
        "a": [3, 2],
        "b": 2,
        "nested": {"x": 1, "y": 2},
        "when": "2024-01-02",
    }

    key = build_json_cache_key("valuation", params)

    assert key == f"valuation:{json.dumps(expected_payload, sort_keys=True)}"


def test_integral_floats_collapse_to_int():
    """A target size of 900 and 900.0 must share one cache entry."""
    assert build_json_cache_key("valuation", {"target_size": 900}) == \
        build_json_cache_key("valuation", {"target_size": 900.0})
    assert build_json_cache_key("valuation", {"target_size": 900.5}) != \
        build_json_cache_key("valuation", {"target_size": 900})


def test_none_values_are_skipped():
    assert normalize_cache_params({"target_floor": None, "target_size": 900}) == {"target_size": 900}


def test_include_keys_filters_params():
    params = {"version": "abc", "target_size": 900, "ignored": "x"}
    key = build_json_cache_key("tiers", params, include_keys=["version", "target_size"])
    assert "ignored" not in key
    assert key.startswith("tiers:")


def test_fingerprint_is_stable_and_order_sensitive():
    a = {"date": "2024-05", "psf": 2000}
    b = {"date": "2024-06", "psf": 2100}

    assert fingerprint_records([a, b]) == fingerprint_records([dict(a), dict(b)])
    assert fingerprint_records([a, b]) != fingerprint_records([b, a])
    assert fingerprint_records([a]) != fingerprint_records([a, b])
    assert len(fingerprint_records([])) == 40
