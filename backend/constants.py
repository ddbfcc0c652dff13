"""
Valuation Constants - Single source of truth for CMA engine calibration.

SYNC: These values MUST match the project valuation tab of the dashboard.
The CMA scorer, tier estimator and floor premium table are calibrated
against each other; change them together or not at all.

Sections:
- Sale type / tenure labels (categorical filters)
- Floor bands (master filter + premium table)
- Time windows (3M / 6M / 12M)
- Tier matching tolerances
- CMA kernel widths and confidence weights
"""

from typing import Dict, Optional, Tuple


# =============================================================================
# SALE TYPE CLASSIFICATION
# =============================================================================

SALE_TYPE_NEW = "New Sale"
SALE_TYPE_RESALE = "Resale"
SALE_TYPE_SUB = "Sub Sale"

SALE_TYPES = [SALE_TYPE_NEW, SALE_TYPE_RESALE, SALE_TYPE_SUB]


def normalize_sale_type(raw_value) -> Optional[str]:
    """
    Normalize a sale type to its canonical label.

    Accepts API tokens ('new_sale', 'resale', 'sub_sale'), URA codes
    ('1', '2', '3') or canonical labels. Returns None for unknown values.
    """
    if raw_value is None:
        return None
    value = str(raw_value).strip()
    if value in SALE_TYPES:
        return value
    lower = value.lower().replace(' ', '_')
    if lower in ('new_sale', '1'):
        return SALE_TYPE_NEW
    if lower in ('resale', '3'):
        return SALE_TYPE_RESALE
    if lower in ('sub_sale', 'subsale', '2'):
        return SALE_TYPE_SUB
    return None


# =============================================================================
# TENURE CLASSIFICATION
# =============================================================================

TENURE_FREEHOLD = "Freehold"
TENURE_99_YEAR = "99-year"
TENURE_999_YEAR = "999-year"

TENURE_TYPES = [TENURE_FREEHOLD, TENURE_99_YEAR, TENURE_999_YEAR]


# =============================================================================
# FLOOR BANDS
# =============================================================================

# Master filter bands. Upper bound None = open-ended ("31+").
FLOOR_FILTER_BANDS: Dict[str, Tuple[int, Optional[int]]] = {
    '01-05': (1, 5),
    '06-10': (6, 10),
    '11-15': (11, 15),
    '16-20': (16, 20),
    '21-30': (21, 30),
    '31+': (31, None),
}

# Candidate bands for the project-level floor premium table
PROJECT_FLOOR_BANDS = [
    '01-05', '06-10', '11-15', '16-20', '21-25',
    '26-30', '31-35', '36-40', '41-45', '46-50',
]

# Floors 1-5 form the "low floor" baseline for the project premium table
LOW_FLOOR_MAX = 5

# Bands (and CAGR endpoint years) with fewer samples are flagged thin
THIN_BAND_THRESHOLD = 3

FILTER_ALL = 'all'


# =============================================================================
# TIME WINDOWS
# =============================================================================

# Rolling windows anchored to the current month (inclusive).
WINDOW_MONTHS = {
    '3M': 3,
    '6M': 6,
    '12M': 12,
}

# Recency preference used by the best-estimate search (most recent first)
WINDOW_PREFERENCE = ['3M', '6M', '12M']

# Heatmap shows the last N distinct years
HEATMAP_YEARS = 7

# Project floor premium uses the last 12 months when it has enough floors
PROJECT_FLOOR_LOOKBACK_MONTHS = 12

# Day-of-month assumed for a "YYYY-MM" transaction date
TRANSACTION_DAY_OF_MONTH = 15


# =============================================================================
# TIER MATCHING
# =============================================================================

# Size match: |area - nearest standard size| < tolerance (sqft)
SIZE_MATCH_TOLERANCE_SQFT = 50

# Standard size options are sampled at these percentile positions
SIZE_OPTION_PERCENTILES = [0.05, 0.15, 0.3, 0.5, 0.7, 0.85, 0.95]
SIZE_OPTION_MIN_DISTINCT = 7


# =============================================================================
# CAGR
# =============================================================================

# Endpoint years with fewer transactions mark the CAGR as low confidence
CAGR_MIN_ENDPOINT_SAMPLES = 3


# =============================================================================
# CMA SCORER
# =============================================================================

MIN_COMPARABLES = 3

# Recency: exp(-0.5 * months / RECENCY_DECAY_MONTHS)
RECENCY_DECAY_MONTHS = 18

# Gaussian kernel widths
SIZE_SIGMA_SQFT = 150
FLOOR_SIGMA_FLOORS = 8

# Weight for comparables where floor cannot be compared
NEUTRAL_FLOOR_WEIGHT = 0.5

# Floor premium adjustment needs at least this many bands
MIN_PREMIUM_BANDS = 2

TOP_COMPARABLES = 5

# Confidence sub-score caps
CONF_RECENT_CAP = 10
CONF_SIZE_MATCH_CAP = 5
CONF_FLOOR_MATCH_CAP = 5
CONF_VOLUME_CAP = 20

# Sub-score match tolerances
CONF_SIZE_MATCH_SQFT = 50
CONF_FLOOR_MATCH_FLOORS = 4

# Recent-count horizons (months)
RECENT_6MO = 6
RECENT_12MO = 12

# Confidence weights (sum to 100)
CONFIDENCE_WEIGHTS_WITH_FLOOR = {
    'recency': 30,
    'size': 25,
    'floor': 20,
    'volume': 25,
}

CONFIDENCE_WEIGHTS_NO_FLOOR = {
    'recency': 40,
    'size': 30,
    'volume': 30,
}
