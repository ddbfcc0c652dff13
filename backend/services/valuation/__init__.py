"""
Valuation Services Package

Comparable market analysis for a single project:
- Master filter and rolling 3M/6M/12M windows
- Tiered average-PSF estimates with best-estimate selection
- Year-bucket CAGR and time-value adjustment
- Floor premium table and floor x year heatmap
- Weighted CMA valuation with a 0-100 confidence score

Usage:
    from services.valuation import ValuationEngine, transactions_from_records

    engine = ValuationEngine(transactions_from_records(rows))
    model = engine.valuation_model(target_size=900, target_floor="11-15")
"""

from services.valuation.engine import ValuationEngine

from services.valuation.loader import (
    transactions_from_records,
    transactions_from_dataframe,
)

from services.valuation.models import (
    Transaction,
    FilterSpec,
    Tier,
    TierResult,
    TierEstimate,
    BestEstimate,
    CAGRResult,
    TimeAdjustment,
    FloorBand,
    FloorPremiumTable,
    ValuationModel,
)

__all__ = [
    'ValuationEngine',
    'transactions_from_records',
    'transactions_from_dataframe',
    'Transaction',
    'FilterSpec',
    'Tier',
    'TierResult',
    'TierEstimate',
    'BestEstimate',
    'CAGRResult',
    'TimeAdjustment',
    'FloorBand',
    'FloorPremiumTable',
    'ValuationModel',
]
