"""
Tests for the master transaction filter and floor band parsing.
"""

import pytest

from services.valuation.bands import band_midpoint, find_band, floor_in_band, parse_floor_band
from services.valuation.filters import filter_transactions, matches_bedrooms, matches_floor_band
from services.valuation.models import FilterSpec
from utils.normalize import ValidationError


class TestParseFloorBand:

    def test_closed_band(self):
        assert parse_floor_band('06-10') == (6, 10)

    def test_ura_style_label(self):
        assert parse_floor_band('11 to 15') == (11, 15)

    def test_open_band(self):
        assert parse_floor_band('31+') == (31, None)

    @pytest.mark.parametrize("label", ['abc', '', None, '15-11', '11-'])
    def test_malformed_raises(self, label):
        with pytest.raises(ValidationError) as exc:
            parse_floor_band(label)
        assert exc.value.field == 'floor'

    def test_midpoints(self):
        assert band_midpoint('11-15') == 13
        assert band_midpoint('01-05') == 3
        assert band_midpoint('31+') == 31

    def test_missing_floor_never_in_band(self):
        assert floor_in_band(None, 1, 5) is False
        assert floor_in_band(None, 31, None) is False

    def test_find_band_uses_first_match(self):
        assert find_band(13, ['01-05', '11-15', '11-20']) == '11-15'
        assert find_band(99, ['01-05', '06-10']) is None


class TestMatches:

    def test_bedrooms_slash_list(self, make_tx):
        tx = make_tx(beds='2/3')
        assert matches_bedrooms(tx, '3')
        assert matches_bedrooms(tx, '2')
        assert not matches_bedrooms(tx, '4')

    def test_bedrooms_missing(self, make_tx):
        assert not matches_bedrooms(make_tx(beds=None), '3')

    def test_floor_band_master_buckets(self, make_tx):
        assert matches_floor_band(make_tx(floor_mid=23), '21-30')
        assert matches_floor_band(make_tx(floor_mid=40), '31+')
        assert not matches_floor_band(make_tx(floor_mid=8), '11-15')

    def test_floor_band_all_passes_missing_floor(self, make_tx):
        assert matches_floor_band(make_tx(floor_mid=None), 'all')


class TestFilterTransactions:

    @pytest.fixture
    def txs(self, make_tx):
        return [
            make_tx('2021-03', beds='2', floor_mid=3, sale_type='New Sale', tenure='Freehold'),
            make_tx('2022-07', beds='3', floor_mid=13, sale_type='Resale'),
            make_tx('2023-01', beds='3', floor_mid=None, sale_type='Resale'),
            make_tx('2024-11', beds='2/3', floor_mid=33, sale_type='Sub Sale'),
            make_tx('2025-02', beds='4', floor_mid=18, sale_type='Resale', tenure='Freehold'),
        ]

    def test_no_spec_returns_copy(self, txs):
        result = filter_transactions(txs)
        assert result == txs
        assert result is not txs

    def test_default_spec_has_no_filters(self, txs):
        assert FilterSpec().has_filters is False
        assert filter_transactions(txs, FilterSpec()) == txs

    def test_bedrooms(self, txs):
        result = filter_transactions(txs, FilterSpec(beds='3'))
        assert [t.date for t in result] == ['2022-07', '2023-01', '2024-11']

    def test_year_range_inclusive(self, txs):
        result = filter_transactions(txs, FilterSpec(year_from='2022', year_to='2024'))
        assert [t.year for t in result] == ['2022', '2023', '2024']

    def test_sale_type_accepts_api_token(self, txs):
        result = filter_transactions(txs, FilterSpec(sale_type='resale'))
        assert len(result) == 3
        assert all(t.sale_type == 'Resale' for t in result)

    def test_tenure(self, txs):
        result = filter_transactions(txs, FilterSpec(tenure='Freehold'))
        assert [t.date for t in result] == ['2021-03', '2025-02']

    def test_floor_band_excludes_missing_floor(self, txs):
        result = filter_transactions(txs, FilterSpec(floor_band='11-15'))
        assert [t.date for t in result] == ['2022-07']

    def test_predicates_are_conjunctive(self, txs):
        spec = FilterSpec(beds='3', sale_type='Resale', year_from='2023')
        result = filter_transactions(txs, spec)
        assert [t.date for t in result] == ['2023-01']

    def test_input_not_mutated(self, txs):
        before = list(txs)
        filter_transactions(txs, FilterSpec(beds='4'))
        assert txs == before

    def test_unknown_floor_band_raises(self, txs):
        with pytest.raises(ValidationError):
            filter_transactions(txs, FilterSpec(floor_band='top'))


class TestFilterSpecFromDict:

    def test_camel_case(self):
        spec = FilterSpec.from_dict({'beds': 3, 'yearFrom': '2020', 'saleType': 'resale', 'floorBand': '06-10'})
        assert spec.beds == '3'
        assert spec.year_from == '2020'
        assert spec.sale_type == 'resale'
        assert spec.floor_band == '06-10'
        assert spec.has_filters

    def test_empty_values_mean_all(self):
        spec = FilterSpec.from_dict({'beds': '', 'tenure': None})
        assert spec == FilterSpec()
        assert FilterSpec.from_dict(None) == FilterSpec()
