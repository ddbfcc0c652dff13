"""
Tests for the weighted CMA valuation scorer.
"""

import math

import pytest

from services.valuation.cma import (
    adjust_comparable_psf,
    compute_confidence,
    compute_valuation_model,
    floor_weight,
    recency_weight,
    score_transactions,
    size_weight,
)
from services.valuation.models import FloorBand
from utils.normalize import ValidationError


@pytest.fixture
def premium_bands():
    return [
        FloorBand(range='01-05', psf=1000, count=3, is_thin=False, premium_percent=0.0),
        FloorBand(range='11-15', psf=1100, count=3, is_thin=False, premium_percent=10.0),
    ]


class TestWeightKernels:

    def test_recency_formula(self):
        assert recency_weight(0) == 1.0
        assert recency_weight(18) == pytest.approx(math.exp(-0.5))
        assert recency_weight(36) == pytest.approx(math.exp(-1.0))

    def test_recency_negative_months_raises(self):
        with pytest.raises(ValidationError):
            recency_weight(-1)

    def test_size_gaussian(self):
        assert size_weight(0) == 1.0
        assert size_weight(150) == pytest.approx(math.exp(-0.5))
        assert size_weight(300) == pytest.approx(math.exp(-2.0))

    def test_floor_gaussian(self):
        assert floor_weight(13, 13) == 1.0
        assert floor_weight(13, 21) == pytest.approx(math.exp(-0.5))

    def test_floor_neutral_when_unknown(self):
        assert floor_weight(None, 13) == 0.5
        assert floor_weight(13, None) == 0.5


class TestAdjustComparablePsf:

    def test_time_then_floor(self, make_tx, premium_bands):
        tx = make_tx(psf=2000, floor_mid=3)
        # 12 months at 10% -> 2200, then +10% floor differential -> 2420
        assert adjust_comparable_psf(tx, 12, 13, 10, premium_bands) == 2420

    def test_no_time_adjustment_without_rate(self, make_tx, premium_bands):
        tx = make_tx(psf=2000, floor_mid=13)
        assert adjust_comparable_psf(tx, 12, 13, None, premium_bands) == 2000

    def test_zero_rate_still_applies(self, make_tx):
        tx = make_tx(psf=2000)
        assert adjust_comparable_psf(tx, 12, None, 0.0, []) == 2000

    def test_floor_adjustment_needs_two_bands(self, make_tx, premium_bands):
        tx = make_tx(psf=2000, floor_mid=3)
        assert adjust_comparable_psf(tx, 0, 13, None, premium_bands[:1]) == 2000

    def test_floor_adjustment_downward(self, make_tx, premium_bands):
        tx = make_tx(psf=2200, floor_mid=13)
        # target on floors 1-5: 1 + (0 - 10)/100 = 0.9
        assert adjust_comparable_psf(tx, 0, 3, None, premium_bands) == 1980


class TestScoreTransactions:

    def test_exact_match_scenario(self, make_tx, now, premium_bands):
        """2000 psf, 24 months ago, at 5% CAGR adjusts to ~2205 and outweighs a 300 sqft mismatch."""
        exact = make_tx('2023-06', psf=2000, area=900, floor_mid=13)
        mismatch = make_tx('2023-06', psf=2000, area=1200, floor_mid=None)

        scored = score_transactions([exact, mismatch], 900, 13, 5, premium_bands, now)

        assert scored[0].months_ago == 24
        assert scored[0].adjusted_psf == 2205
        assert scored[0].weight > scored[1].weight
        assert scored[1].size_delta == 300
        assert scored[1].floor_weight == 0.5

    def test_weights_bounded(self, make_tx, now):
        txs = [
            make_tx('2010-01', area=3000, floor_mid=50),
            make_tx('2025-06', area=900, floor_mid=13),
            make_tx('2030-01', area=900, floor_mid=None),
        ]
        for s in score_transactions(txs, 900, 13, 3, [], now):
            assert 0.0 <= s.weight <= 1.0
            assert 0.0 <= s.recency_weight <= 1.0

    def test_order_preserved(self, make_tx, now):
        txs = [make_tx('2024-01', psf=1), make_tx('2025-01', psf=2)]
        assert [s.psf for s in score_transactions(txs, 900, now=now)] == [1, 2]


class TestComputeConfidence:

    def test_without_floor(self):
        assert compute_confidence(10, 5, None, 20) == 100
        assert compute_confidence(5, 0, None, 10) == 35  # 20 + 0 + 15

    def test_with_floor(self):
        assert compute_confidence(10, 5, 5, 20) == 100
        assert compute_confidence(5, 5, 0, 4) == 45  # 15 + 25 + 0 + 5

    def test_half_point_rounds_up(self):
        # volume 3/20 * 30 = 4.5
        assert compute_confidence(0, 0, None, 3) == 5

    def test_caps(self):
        assert compute_confidence(100, 100, 100, 100) == 100
        assert compute_confidence(0, 0, 0, 0) == 0


class TestComputeValuationModel:

    def test_fewer_than_three_is_none(self, make_tx, now):
        txs = [make_tx(), make_tx('2025-04')]
        assert compute_valuation_model(txs, 900, now=now) is None

    def test_zero_psf_excluded_before_count(self, make_tx, now):
        txs = [make_tx(), make_tx('2025-04'), make_tx('2025-03', psf=0)]
        assert compute_valuation_model(txs, 900, now=now) is None

    def test_non_positive_target_size_raises(self, make_tx, now):
        with pytest.raises(ValidationError):
            compute_valuation_model([make_tx()] * 3, 0, now=now)

    def test_identical_comparables(self, make_tx, now):
        txs = [make_tx('2025-06', psf=2000, area=900, floor_mid=None) for _ in range(3)]
        model = compute_valuation_model(txs, 900, now=now)

        assert model.estimated_psf == 2000
        assert model.std_dev_psf == 0
        assert model.low_psf == model.high_psf == 2000
        assert model.total_count == 3
        assert model.floor_match_count is None
        assert model.cagr_used is None

    def test_weighted_mean_and_range(self, make_tx, now):
        """Equal weights: mean 2000, population std of (1900, 2000, 2100) = 81.6."""
        txs = [
            make_tx('2025-06', psf=1900, area=900),
            make_tx('2025-06', psf=2000, area=900),
            make_tx('2025-06', psf=2100, area=900),
        ]
        model = compute_valuation_model(txs, 900, now=now)
        assert model.estimated_psf == 2000
        assert model.std_dev_psf == 82
        assert (model.low_psf, model.high_psf) == (1918, 2082)

    def test_closer_comparables_pull_the_estimate(self, make_tx, now):
        txs = [
            make_tx('2025-06', psf=2000, area=900),
            make_tx('2025-06', psf=2000, area=910),
            make_tx('2025-06', psf=3000, area=1400),
        ]
        model = compute_valuation_model(txs, 900, now=now)
        assert 2000 <= model.estimated_psf < 2100

    def test_mean_within_adjusted_range(self, make_tx, now, premium_bands):
        txs = [
            make_tx('2021-03', psf=1500, area=700, floor_mid=3),
            make_tx('2023-11', psf=1800, area=950, floor_mid=13),
            make_tx('2024-08', psf=1950, area=880, floor_mid=None),
            make_tx('2025-04', psf=2100, area=1100, floor_mid=23),
        ]
        model = compute_valuation_model(txs, 900, 13, 4.0, premium_bands, now)
        scored = score_transactions(txs, 900, 13, 4.0, premium_bands, now)
        adjusted = [s.adjusted_psf for s in scored]
        assert min(adjusted) <= model.estimated_psf <= max(adjusted)
        assert 0 <= model.confidence <= 100
        assert model.cagr_used == 4.0

    def test_counts(self, make_tx, now):
        txs = [
            make_tx('2025-05', area=900, floor_mid=13),    # 1 month, size match, floor match
            make_tx('2025-01', area=940, floor_mid=17),    # 5 months, size match, floor match
            make_tx('2024-09', area=1000, floor_mid=3),    # 9 months
            make_tx('2023-06', area=960, floor_mid=None),  # 24 months
        ]
        model = compute_valuation_model(txs, 900, 13, now=now)

        assert model.recent_6mo_count == 2
        assert model.recent_12mo_count == 3
        assert model.size_match_count == 2
        assert model.floor_match_count == 2
        # recency 3/10*30 + size 2/5*25 + floor 2/5*20 + volume 4/20*25 = 9 + 10 + 8 + 5
        assert model.confidence == 32

    def test_top_comparables_capped_and_sorted(self, make_tx, now):
        txs = [make_tx(f"2025-0{m}", area=900 + 20 * m) for m in range(1, 7)] + \
              [make_tx('2020-01', area=2000)]
        model = compute_valuation_model(txs, 900, now=now)

        assert len(model.top_comparables) == 5
        weights = [c.weight for c in model.top_comparables]
        assert weights == sorted(weights, reverse=True)
        assert all(c.date != '2020-01' for c in model.top_comparables)

    def test_all_weights_underflow(self, make_tx, now):
        txs = [make_tx('2025-06', area=900 + 10 ** 6) for _ in range(3)]
        assert compute_valuation_model(txs, 900, now=now) is None

    def test_confidence_half_point_rounds_up(self, make_tx, now):
        txs = [make_tx('2020-01', area=1400, floor_mid=None) for _ in range(3)]
        model = compute_valuation_model(txs, 900, now=now)
        assert (model.recent_12mo_count, model.size_match_count) == (0, 0)
        assert model.confidence == 5

    def test_min_comparables_override(self, make_tx, now):
        txs = [make_tx(), make_tx('2025-04')]
        assert compute_valuation_model(txs, 900, now=now, min_comparables=2) is not None

    def test_to_dict_shape(self, make_tx, now):
        txs = [make_tx('2025-06') for _ in range(3)]
        data = compute_valuation_model(txs, 900, now=now).to_dict()
        assert data['estimatedPsf'] == 2000
        assert data['floorMatchCount'] is None
        assert {'weight', 'adjustedPsf', 'monthsAgo', 'psf', 'date'} <= set(data['topComparables'][0])
