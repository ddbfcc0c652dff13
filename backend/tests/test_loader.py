"""
Tests for converting upstream rows into Transactions.
"""

import pandas as pd
import pytest

from services.valuation.loader import (
    transaction_from_record,
    transactions_from_dataframe,
    transactions_from_records,
)
from utils.normalize import ValidationError


class TestTransactionFromRecord:

    def test_wire_shape(self):
        tx = transaction_from_record({
            'date': '2024-5',
            'price': 1800000,
            'area': 1000,
            'floorRange': '11 to 15',
            'saleType': 'resale',
            'tenure': '99-year',
            'beds': '3',
        })
        assert tx.date == '2024-05'
        assert tx.year == '2024'
        assert tx.psf == 1800
        assert tx.floor_mid == 13
        assert tx.floor_range == '11 to 15'
        assert tx.sale_type == 'Resale'
        assert tx.bedrooms == '3'

    def test_precomputed_psf_and_floor_mid_win(self):
        tx = transaction_from_record({
            'date': '2024-05', 'price': 1800000, 'area': 1000,
            'psf': 1795, 'floorMid': 8, 'floorRange': '11 to 15',
        })
        assert tx.psf == 1795
        assert tx.floor_mid == 8

    def test_basement_range_has_no_midpoint(self):
        tx = transaction_from_record({'date': '2024-05', 'price': 1, 'area': 1, 'floorRange': 'B1 to B5'})
        assert tx.floor_mid is None

    @pytest.mark.parametrize("row", [
        {'date': '2024-05', 'price': 1000000, 'area': 0},
        {'date': '2024-05', 'price': 0, 'area': 1000},
        {'date': '2024-05', 'price': 1000000, 'area': 1000, 'psf': 0},
    ])
    def test_unusable_rows(self, row):
        assert transaction_from_record(row) is None

    def test_malformed_date_raises(self):
        with pytest.raises(ValidationError):
            transaction_from_record({'date': 'May 2024', 'price': 1, 'area': 1})


class TestTransactionsFromRecords:

    def test_drops_unusable_rows(self):
        rows = [
            {'date': '2024-05', 'price': 1800000, 'area': 1000},
            {'date': '2024-06', 'price': 0, 'area': 1000},
            {'date': '2024-07', 'price': 2000000, 'area': 1000},
        ]
        txs = transactions_from_records(rows)
        assert [t.date for t in txs] == ['2024-05', '2024-07']


class TestTransactionsFromDataFrame:

    def test_datetime_column_and_nan(self):
        df = pd.DataFrame({
            'date': pd.to_datetime(['2024-05-20', '2023-11-02']),
            'price': [1800000, 1500000],
            'area': [1000, 1000],
            'floorMid': [13.0, float('nan')],
            'beds': ['3', None],
        })
        txs = transactions_from_dataframe(df)

        assert [t.date for t in txs] == ['2024-05', '2023-11']
        assert txs[0].floor_mid == 13.0
        assert txs[1].floor_mid is None
        assert txs[1].bedrooms is None
        assert txs[1].psf == 1500

    def test_empty(self):
        assert transactions_from_dataframe(pd.DataFrame()) == []
