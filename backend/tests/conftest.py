"""
Root pytest configuration for backend tests.

Provides:
- backend/ on sys.path
- A fixed reference date (`now`) so window and recency math is stable
- `make_tx` transaction factory
- Shared Flask fixtures (app, client)
"""

import sys
from datetime import date
from pathlib import Path

# Add backend directory to Python path so imports like
# `from services.valuation.cma import ...` and `from utils.normalize import ...` work
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest

from services.valuation.models import Transaction


NOW = date(2025, 6, 15)


def build_tx(
    date_str: str = '2025-05',
    psf: float = 2000,
    area: float = 900,
    floor_mid=13.0,
    price=None,
    beds='3',
    sale_type='Resale',
    tenure='99-year',
    floor_range=None,
) -> Transaction:
    return Transaction(
        date=date_str,
        year=date_str[:4],
        price=price if price is not None else psf * area,
        area=area,
        psf=psf,
        floor_mid=floor_mid,
        floor_range=floor_range,
        sale_type=sale_type,
        tenure=tenure,
        bedrooms=beds,
    )


@pytest.fixture
def now():
    """Fixed reference date: 2025-06-15."""
    return NOW


@pytest.fixture
def make_tx():
    """Factory for Transactions with sensible defaults."""
    return build_tx


@pytest.fixture
def app():
    """Create test Flask application."""
    from app import create_app

    app = create_app()
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    from routes.valuation import clear_engine_cache

    clear_engine_cache()
    return app.test_client()
