"""
Unit tests for configuration catalogues and data models.
"""

import pytest

from opportunity_engine.shared.config.defaults import DEFAULT_SCORING, DEFAULT_SYMBOLS, DEFAULT_WINDOWS
from opportunity_engine.shared.config.strategy_modalities import (
    StrategyModality,
    get_modality_info,
    get_modality_label,
    list_modalities,
)
from opportunity_engine.shared.config.timeframes import (
    DEFAULT_TIMEFRAMES,
    get_exchange_intervals,
    get_timeframe_by_id,
)
from opportunity_engine.shared.models.data import Candle, candles_to_frame


class TestStrategyModalities:
    """Tests for the modality catalogue."""

    @pytest.mark.parametrize("identifier,expected", [
        ('scalping', StrategyModality.SCALPING),
        ('dayTrade', StrategyModality.DAY_TRADE),
        ('DAYTRADE', StrategyModality.DAY_TRADE),
        ('day_trade', StrategyModality.DAY_TRADE),
        (' institutionalVWAP ', StrategyModality.INSTITUTIONAL_VWAP),
    ])
    def test_parse(self, identifier, expected):
        assert StrategyModality.parse(identifier) == expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown strategy modality"):
            StrategyModality.parse('grid')

    def test_catalogue(self):
        modalities = list_modalities()
        assert len(modalities) == 15
        assert {m['category'] for m in modalities} == {
            'Core', 'Trend', 'Reversal', 'Liquidity', 'Volume', 'Institutional',
        }
        assert all(m['max_points'] <= 100 for m in modalities)

    def test_info_lookup(self):
        assert get_modality_info('liquidityFVG').label == 'FVG Entry'
        assert get_modality_label(StrategyModality.SCALPING) == 'Scalping'


class TestTimeframes:
    """Tests for timeframe options."""

    def test_lookup(self):
        assert get_timeframe_by_id('medium').exchange_interval == '15m'
        assert get_timeframe_by_id('weekly') is None

    def test_exchange_intervals(self):
        assert get_exchange_intervals(['short', 'bogus', 'higher']) == ['3m', '1h']
        assert get_exchange_intervals(DEFAULT_TIMEFRAMES) == ['3m', '15m']


class TestDefaults:
    """Tests for default configuration values."""

    def test_windows(self):
        assert (DEFAULT_WINDOWS.ema_fast, DEFAULT_WINDOWS.ema_slow) == (20, 50)
        assert DEFAULT_WINDOWS.rsi_period == 14

    def test_scoring(self):
        assert DEFAULT_SCORING.min_candles == 50
        assert DEFAULT_SCORING.ranking_limit == 20

    def test_symbols(self):
        assert len(DEFAULT_SYMBOLS) == 20
        assert len(set(DEFAULT_SYMBOLS)) == 20


class TestCandleModel:
    """Tests for candle helpers."""

    def test_geometry(self):
        candle = Candle(0, 100.0, 106.0, 97.0, 104.0, 1.0)
        assert candle.body == pytest.approx(4.0)
        assert candle.range == pytest.approx(9.0)
        assert candle.upper_wick == pytest.approx(2.0)
        assert candle.lower_wick == pytest.approx(3.0)
        assert candle.is_bullish and not candle.is_bearish

    def test_from_kline(self):
        candle = Candle.from_kline([1700000000000, '1.5', '2.0', '1.0', '1.8', '300', 1700000059999])
        assert candle.timestamp == 1700000000000
        assert candle.close == 1.8

    def test_round_trip_dict(self):
        candle = Candle(60000, 1.0, 2.0, 0.5, 1.5, 10.0)
        assert Candle.from_dict(candle.to_dict()) == candle

    def test_frame(self):
        df = candles_to_frame([Candle(0, 1.0, 2.0, 0.5, 1.5, 10.0)])
        assert list(df.columns) == ['timestamp', 'open', 'high', 'low', 'close', 'volume']
        assert candles_to_frame([]).empty
