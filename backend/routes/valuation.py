"""
Valuation API Routes

Thin HTTP adapter over services.valuation. Every endpoint takes the same
JSON body:

    {
        "transactions": [{"date": "2024-05", "price": 1800000, "area": 1000,
                          "floorRange": "11 to 15", "beds": "3", ...}],
        "filters": {"beds": "3", "yearFrom": "2020", "saleType": "resale",
                    "tenure": "all", "floorBand": "all"},
        "targetSize": 900,
        "targetFloor": "11-15",
        "startYear": "2020",
        "endYear": "2024",
        "now": "2025-06-15"
    }

Endpoints:
- POST /api/valuation/model          - weighted CMA valuation (data = null when not enough comparables)
- POST /api/valuation/tiers          - tier table, best estimate and size options
- POST /api/valuation/cagr           - year buckets and CAGR
- POST /api/valuation/floor-premiums - floor premium table and floor x year heatmap
"""
import logging
import time

from flask import Blueprint, request, jsonify
from pydantic import ValidationError as PydanticValidationError

from api.contracts.pydantic_models import ValuationParams
from api.middleware.error_envelope import pydantic_error_field
from api.serializers import success_envelope
from services.valuation.cache import LRUCache
from services.valuation.engine import ValuationEngine
from services.valuation.loader import transactions_from_records
from utils.cache_key import build_json_cache_key, fingerprint_records
from utils.normalize import (
    ValidationError as NormalizeValidationError, validation_error_response
)

logger = logging.getLogger('valuation.routes')

valuation_bp = Blueprint('valuation', __name__)

# Engines are reused across requests for the same (transaction set, now),
# so repeated dashboard queries hit the engine's memo cache.
_engines = LRUCache(maxsize=32)

API_CONTRACT_HEADER = 'X-API-Contract-Version'
CURRENT_API_CONTRACT_VERSION = 'v1'


@valuation_bp.after_request
def add_contract_version_header(response):
    """Add X-API-Contract-Version header to all valuation responses."""
    response.headers[API_CONTRACT_HEADER] = CURRENT_API_CONTRACT_VERSION
    return response


def _parse_params() -> ValuationParams:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise NormalizeValidationError(
            "Request body must be a JSON object",
            field='body',
        )
    try:
        return ValuationParams(**payload)
    except PydanticValidationError as e:
        errors = e.errors()
        message = errors[0].get('msg', str(e)) if errors else str(e)
        raise NormalizeValidationError(message, field=pydantic_error_field(e))


def _engine_for(params: ValuationParams) -> ValuationEngine:
    transactions = transactions_from_records(params.transactions)
    version = fingerprint_records(t.to_dict() for t in transactions)
    key = build_json_cache_key('engine', {'version': version, 'now': params.now})
    return _engines.get_or_compute(key, lambda: ValuationEngine(transactions, now=params.now))


def clear_engine_cache() -> None:
    _engines.clear()


def _base_meta(engine: ValuationEngine, params: ValuationParams, start: float) -> dict:
    spec = params.filters.to_filter_spec()
    return {
        'version': engine.version,
        'transactionCount': len(engine.transactions),
        'filteredCount': len(engine.filtered_transactions(spec)),
        'filters': spec.to_dict(),
        'elapsedMs': round((time.time() - start) * 1000, 1),
    }


@valuation_bp.route("/valuation/model", methods=["POST"])
def valuation_model():
    """Weighted CMA valuation for the target unit."""
    start = time.time()
    try:
        params = _parse_params()
        engine = _engine_for(params)
        spec = params.filters.to_filter_spec()
        model = engine.valuation_model(params.target_size, params.target_floor, spec)
    except NormalizeValidationError as e:
        body, status = validation_error_response(e)
        return jsonify(body), status

    warnings = []
    if model is None:
        warnings.append("Not enough comparable transactions for a valuation")

    meta = _base_meta(engine, params, start)
    meta.update({'targetSize': params.target_size, 'targetFloor': params.target_floor})
    logger.debug(f"valuation/model n={meta['filteredCount']} ok={model is not None}")
    return jsonify(success_envelope(model, meta=meta, warnings=warnings))


@valuation_bp.route("/valuation/tiers", methods=["POST"])
def valuation_tiers():
    """Tier table per window, the best estimate and standard size options."""
    start = time.time()
    try:
        params = _parse_params()
        engine = _engine_for(params)
        spec = params.filters.to_filter_spec()
        data = {
            'tiers': engine.tier_estimates(params.target_size, params.target_floor, spec),
            'bestEstimate': engine.best_estimate(params.target_size, params.target_floor, spec),
            'sizeOptions': engine.size_options(),
        }
    except NormalizeValidationError as e:
        body, status = validation_error_response(e)
        return jsonify(body), status

    return jsonify(success_envelope(data, meta=_base_meta(engine, params, start)))


@valuation_bp.route("/valuation/cagr", methods=["POST"])
def valuation_cagr():
    """Year-bucket averages and CAGR between the endpoint years."""
    start = time.time()
    try:
        params = _parse_params()
        engine = _engine_for(params)
        result = engine.bucket_cagr(params.start_year, params.end_year, params.filters.to_filter_spec())
    except NormalizeValidationError as e:
        body, status = validation_error_response(e)
        return jsonify(body), status

    warnings = []
    if result.cagr_percent is None:
        warnings.append("Growth rate cannot be determined from the available years")
    elif result.low_confidence:
        warnings.append("Fewer than 3 transactions in an endpoint year")

    return jsonify(success_envelope(result, meta=_base_meta(engine, params, start), warnings=warnings))


@valuation_bp.route("/valuation/floor-premiums", methods=["POST"])
def valuation_floor_premiums():
    """Floor premium table plus the floor x year heatmap."""
    start = time.time()
    try:
        params = _parse_params()
        engine = _engine_for(params)
        spec = params.filters.to_filter_spec()
        data = {
            'premiums': engine.floor_premiums(spec),
            'heatmap': engine.heatmap(spec),
        }
    except NormalizeValidationError as e:
        body, status = validation_error_response(e)
        return jsonify(body), status

    return jsonify(success_envelope(data, meta=_base_meta(engine, params, start)))
