import os
from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    """Read a positive int from the environment, falling back on bad input."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


class Config:
    DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'

    # Logging level for the valuation loggers (DEBUG, INFO, WARNING, ...)
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Bounded LRU cache per ValuationEngine (entries, not bytes)
    VALUATION_CACHE_SIZE = _env_int('VALUATION_CACHE_SIZE', 256)

    # CMA scorer refuses to value with fewer comparables than this
    VALUATION_MIN_COMPARABLES = _env_int('VALUATION_MIN_COMPARABLES', 3)

    # Max transactions accepted per HTTP request
    MAX_TRANSACTIONS_PER_REQUEST = _env_int('MAX_TRANSACTIONS_PER_REQUEST', 20000)
