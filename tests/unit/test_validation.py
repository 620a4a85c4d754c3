"""
Unit tests for boundary validation and the error policy.

Tests:
- validate_candles fail-fast checks (non-finite, prices, volume, geometry)
- validate_ohlcv dict / raise contract
- enforce_complete_score and enforce_weight_budget
"""

import math

import pandas as pd
import pytest

from opportunity_engine.indicators.validation_utils import (
    DataValidationError,
    NonFiniteError,
    validate_candles,
    validate_ohlcv,
)
from opportunity_engine.shared.config.institutional import CALIBRATION_WEIGHTS, EARLY_CONFLUENCE_WEIGHTS
from opportunity_engine.shared.models.scoring import ConditionCheck, OpportunityScore
from opportunity_engine.shared.utils.error_policy import (
    IncompleteScoreError,
    WeightBudgetError,
    enforce_complete_score,
    enforce_weight_budget,
)
from tests.fixtures.market_data import generate_random_walk_candles, make_candle


class TestValidateCandles:
    """Tests for the library-boundary candle check."""

    def test_valid_candles_pass(self):
        validate_candles(generate_random_walk_candles(60))

    def test_empty_passes(self):
        validate_candles([])

    def test_nan_close_raises_non_finite(self):
        candles = generate_random_walk_candles(10)
        candles[4] = make_candle(4, 100.0, 101.0, 99.0, math.nan)
        with pytest.raises(NonFiniteError):
            validate_candles(candles)

    def test_infinite_volume_raises_non_finite(self):
        candles = [make_candle(0, 100.0, 101.0, 99.0, 100.0, volume=math.inf)]
        with pytest.raises(NonFiniteError):
            validate_candles(candles)

    def test_non_finite_is_a_validation_error(self):
        candles = [make_candle(0, 100.0, 101.0, 99.0, math.nan)]
        with pytest.raises(DataValidationError):
            validate_candles(candles)

    def test_negative_volume_raises(self):
        candles = [make_candle(0, 100.0, 101.0, 99.0, 100.0, volume=-5.0)]
        with pytest.raises(DataValidationError, match="negative volume"):
            validate_candles(candles)

    def test_non_positive_price_raises(self):
        candles = [make_candle(0, 0.0, 101.0, 0.0, 100.0)]
        with pytest.raises(DataValidationError, match="non-positive"):
            validate_candles(candles)

    def test_inverted_candle_raises(self):
        candles = [make_candle(0, 10.0, 9.0, 11.0, 10.0)]
        with pytest.raises(DataValidationError, match="inverted"):
            validate_candles(candles)

    def test_zero_volume_allowed(self):
        candles = [make_candle(i, 100.0, 101.0, 99.0, 100.0, volume=0.0) for i in range(10)]
        validate_candles(candles)

    def test_name_in_message(self):
        candles = [make_candle(0, 100.0, 101.0, 99.0, 100.0, volume=-1.0)]
        with pytest.raises(DataValidationError, match="candles_5m"):
            validate_candles(candles, name="candles_5m")


class TestValidateOHLCV:
    """Tests for the DataFrame validator contract."""

    def test_report_without_raise(self):
        df = pd.DataFrame({
            'open': [1.0, 2.0], 'high': [1.0, 1.0], 'low': [2.0, 0.5],
            'close': [1.0, 1.0], 'volume': [1.0, 1.0],
        })
        report = validate_ohlcv(df, raise_on_error=False)
        assert report['valid'] is False
        assert any('inverted' in e for e in report['errors'])

    def test_missing_columns_raise(self):
        df = pd.DataFrame({'close': [1.0]})
        with pytest.raises(DataValidationError, match="Missing required columns"):
            validate_ohlcv(df)

    def test_min_rows(self):
        df = pd.DataFrame({'open': [1.0], 'high': [1.0], 'low': [1.0], 'close': [1.0], 'volume': [1.0]})
        report = validate_ohlcv(df, min_rows=5, raise_on_error=False)
        assert report['valid'] is False


def _score(**overrides) -> OpportunityScore:
    fields = dict(
        symbol='BTCUSDT',
        score=50,
        conditions=[ConditionCheck(id='volume', label='High volume spike', met=True)],
        narrative='Moderate opportunity',
        timeframes=['3m'],
    )
    fields.update(overrides)
    return OpportunityScore(**fields)


class TestErrorPolicy:
    """Tests for output contract enforcement."""

    def test_complete_score_passes(self):
        enforce_complete_score(_score())

    def test_none_raises(self):
        with pytest.raises(IncompleteScoreError):
            enforce_complete_score(None)

    @pytest.mark.parametrize("overrides", [
        {'symbol': ''},
        {'score': 101},
        {'score': -1},
        {'score': 50.5},
        {'conditions': []},
        {'narrative': '   '},
    ])
    def test_incomplete_scores_raise(self, overrides):
        with pytest.raises(IncompleteScoreError):
            enforce_complete_score(_score(**overrides))

    def test_weight_tables_on_budget(self):
        enforce_weight_budget(CALIBRATION_WEIGHTS)
        enforce_weight_budget(EARLY_CONFLUENCE_WEIGHTS)

    def test_off_budget_raises(self):
        with pytest.raises(WeightBudgetError):
            enforce_weight_budget({'a': 0.5, 'b': 0.4})

    def test_negative_weight_raises(self):
        with pytest.raises(WeightBudgetError):
            enforce_weight_budget({'a': 1.5, 'b': -0.5})
