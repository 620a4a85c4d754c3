"""
Unit tests for market turn detection.

Tests:
- EMA cross search (confirmation, reversal, window)
- Major turn on a 60-candle trend change
- Micro-turn candlestick rules
- Unified selection, event keys and the caller-side event log
"""

import pandas as pd
import pytest

from opportunity_engine.analysis.market_turn import (
    TurnEventLog,
    aligned_ema_spread,
    detect_ema_cross,
    detect_major_turn,
    detect_micro_turn,
    detect_unified_market_turn,
    get_turn_event_key,
)
from opportunity_engine.indicators.validation_utils import NonFiniteError
from opportunity_engine.shared.models.turns import MarketTurn, TurnDirection, TurnType
from tests.fixtures.market_data import (
    candles_from_closes,
    generate_random_walk_candles,
    linear_closes,
    major_turn_closes,
    make_candle,
)


def _series(values, start=0):
    return pd.Series(values, index=range(start, start + len(values)), dtype=float)


def _flat(count, price=100.0):
    return [make_candle(i, price, price + 0.5, price - 0.5, price) for i in range(count)]


class TestEMACross:
    """Tests for the windowed EMA cross search."""

    def test_confirmed_bullish_cross(self):
        fast = _series([1.0, 1.0, 3.0, 3.0])
        slow = _series([2.0, 2.0, 2.0, 2.0])
        assert detect_ema_cross(fast, slow) == (TurnDirection.UPWARD, 3)

    def test_confirmed_bearish_cross(self):
        fast = _series([3.0, 3.0, 1.0, 1.0])
        slow = _series([2.0, 2.0, 2.0, 2.0])
        assert detect_ema_cross(fast, slow) == (TurnDirection.DOWNWARD, 3)

    def test_same_side_spread_is_not_a_cross(self):
        fast = _series([1.4, 1.6, 1.4])
        slow = _series([1.0, 1.0, 1.0])
        assert detect_ema_cross(fast, slow) is None

    def test_reversed_cross_is_ignored(self):
        fast = _series([1.0, 3.0, 1.0])
        slow = _series([2.0, 2.0, 2.0])
        assert detect_ema_cross(fast, slow) is None

    def test_unconfirmed_cross_is_ignored(self):
        fast = _series([1.0, 1.0, 3.0])
        slow = _series([2.0, 2.0, 2.0])
        assert detect_ema_cross(fast, slow) is None

    def test_cross_outside_window_is_ignored(self):
        fast = _series([1.0] + [3.0] * 8)
        slow = _series([2.0] * 9)
        assert detect_ema_cross(fast, slow, window=5) is None

    def test_positions_follow_candle_index(self):
        fast = _series([1.0, 1.0, 1.0, 3.0, 3.0, 3.0], start=10)
        slow = _series([2.0, 2.0, 2.0, 2.0], start=12)
        assert list(aligned_ema_spread(fast, slow).index) == [12, 13, 14, 15]
        assert detect_ema_cross(fast, slow) == (TurnDirection.UPWARD, 14)


class TestMajorTurn:
    """Tests for EMA20/EMA50 regime reversals."""

    def test_insufficient_data(self):
        turn = detect_major_turn(candles_from_closes(linear_closes(49, 100.0, 0.1)), '15m')
        assert not turn.detected
        assert turn.reason == 'Insufficient data for major turn detection'

    def test_upward_cross_after_decline(self):
        candles = candles_from_closes(major_turn_closes())
        turn = detect_major_turn(candles, '15m')

        assert turn.detected
        assert turn.direction == TurnDirection.UPWARD
        assert turn.type == TurnType.MAJOR
        assert turn.confidence == pytest.approx(0.85)
        assert turn.timestamp == candles[56].timestamp
        assert turn.reason == 'EMA20 crossed above EMA50 with confirmation'

    def test_steady_trend_has_no_turn(self):
        turn = detect_major_turn(candles_from_closes(linear_closes(80, 100.0, 0.5)), '1h')
        assert not turn.detected
        assert turn.reason == 'No major turn detected'


class TestMicroTurn:
    """Tests for short-window candlestick reversals."""

    def test_insufficient_data(self):
        turn = detect_micro_turn(_flat(9), '3m')
        assert not turn.detected
        assert turn.reason == 'Insufficient data for micro-turn detection'

    def test_bullish_engulfing(self):
        candles = _flat(8) + [
            make_candle(8, 101.0, 101.2, 99.8, 100.0),
            make_candle(9, 99.5, 102.2, 99.4, 102.0),
        ]
        turn = detect_micro_turn(candles, '3m')
        assert turn.detected
        assert turn.direction == TurnDirection.UPWARD
        assert turn.type == TurnType.MICRO
        assert turn.reason == 'Bullish engulfing pattern'
        assert turn.timestamp == candles[-1].timestamp
        assert turn.confidence == pytest.approx(0.70)

    def test_bearish_engulfing(self):
        candles = _flat(8) + [
            make_candle(8, 100.0, 101.2, 99.8, 101.0),
            make_candle(9, 101.5, 101.6, 98.8, 99.0),
        ]
        turn = detect_micro_turn(candles, '3m')
        assert turn.detected
        assert turn.direction == TurnDirection.DOWNWARD
        assert turn.reason == 'Bearish engulfing pattern'

    def test_hammer(self):
        candles = _flat(9) + [make_candle(9, 100.0, 101.05, 97.0, 101.0)]
        turn = detect_micro_turn(candles, '3m')
        assert turn.direction == TurnDirection.UPWARD
        assert turn.reason == 'Hammer reversal pattern'

    def test_shooting_star(self):
        candles = _flat(9) + [make_candle(9, 101.0, 104.0, 99.95, 100.0)]
        turn = detect_micro_turn(candles, '3m')
        assert turn.direction == TurnDirection.DOWNWARD
        assert turn.reason == 'Shooting star reversal pattern'
        assert turn.confidence == pytest.approx(0.70)

    @staticmethod
    def _rising_into_support(last_low):
        # Support at 98.0 from candle 7; closes rise 99.0 -> 99.2 -> 99.4
        return _flat(7) + [
            make_candle(7, 99.5, 99.6, 98.0, 99.0),
            make_candle(8, 99.1, 99.25, 99.05, 99.2),
            make_candle(9, 99.3, 99.45, last_low, 99.4),
        ]

    @staticmethod
    def _falling_into_resistance(last_high):
        # Resistance at 102.0 from candle 7; closes fall 101.0 -> 100.8 -> 100.6
        return _flat(7) + [
            make_candle(7, 100.5, 102.0, 100.4, 101.0),
            make_candle(8, 100.9, 100.95, 100.75, 100.8),
            make_candle(9, 100.7, last_high, 100.55, 100.6),
        ]

    def test_bullish_exhaustion_at_tolerance_edge(self):
        turn = detect_micro_turn(self._rising_into_support(98.0 * (1 + 0.002)), '3m')
        assert turn.detected
        assert turn.direction == TurnDirection.UPWARD
        assert turn.reason == 'Bullish exhaustion at support'
        assert turn.confidence == pytest.approx(0.70)

    def test_bullish_exhaustion_beyond_tolerance(self):
        turn = detect_micro_turn(self._rising_into_support(98.0 * 1.0021), '3m')
        assert not turn.detected

    def test_bearish_exhaustion_at_tolerance_edge(self):
        turn = detect_micro_turn(self._falling_into_resistance(102.0 * (1 - 0.002)), '3m')
        assert turn.detected
        assert turn.direction == TurnDirection.DOWNWARD
        assert turn.reason == 'Bearish exhaustion at resistance'

    def test_bearish_exhaustion_beyond_tolerance(self):
        turn = detect_micro_turn(self._falling_into_resistance(102.0 * 0.9979), '3m')
        assert not turn.detected

    def test_flat_market_has_no_turn(self):
        turn = detect_micro_turn(_flat(12), '3m')
        assert not turn.detected
        assert turn.reason == 'No micro-turn detected'


class TestUnifiedTurn:
    """Tests for major-over-micro selection."""

    def test_major_takes_priority(self):
        result = detect_unified_market_turn(candles_from_closes(major_turn_closes()), '15m')
        assert result.detected
        assert result.type == TurnType.MAJOR
        assert result.debug_info.major_turn_detected
        assert result.debug_info.candle_count == 60
        assert result.ema20 > result.ema50

    def test_micro_when_no_major(self):
        candles = _flat(8) + [
            make_candle(8, 101.0, 101.2, 99.8, 100.0),
            make_candle(9, 99.5, 102.2, 99.4, 102.0),
        ]
        result = detect_unified_market_turn(candles, '3m')
        assert result.type == TurnType.MICRO
        assert not result.debug_info.major_turn_detected
        assert result.ema20 is None and result.ema50 is None

    def test_no_turn(self):
        result = detect_unified_market_turn(_flat(5), '3m')
        assert not result.detected
        assert result.turn.reason == 'No turn detected'
        assert result.direction is None

    def test_non_finite_input_raises(self):
        candles = generate_random_walk_candles(60)
        candles[10] = make_candle(10, 100.0, float('inf'), 99.0, 100.0)
        with pytest.raises(NonFiniteError):
            detect_unified_market_turn(candles, '15m')


class TestTurnEvents:
    """Tests for event keys and deduplication."""

    def _turn(self, timestamp=600_000):
        return MarketTurn(
            detected=True,
            direction=TurnDirection.UPWARD,
            type=TurnType.MICRO,
            timestamp=timestamp,
            interval='3m',
            confidence=0.7,
            reason='Bullish engulfing pattern',
        )

    def test_event_key(self):
        assert get_turn_event_key('BTCUSDT', self._turn()) == 'BTCUSDT-upward-micro-3m-600000'

    def test_no_key_for_undetected(self):
        assert get_turn_event_key('BTCUSDT', MarketTurn.none('No turn detected')) == ''

    def test_event_log_deduplicates(self):
        log = TurnEventLog()
        assert log.register('BTCUSDT', self._turn())
        assert not log.register('BTCUSDT', self._turn())
        assert log.register('BTCUSDT', self._turn(timestamp=780_000))
        assert log.register('ETHUSDT', self._turn())
        assert len(log) == 3
        assert 'BTCUSDT-upward-micro-3m-600000' in log

    def test_event_log_ignores_undetected(self):
        log = TurnEventLog()
        assert not log.register('BTCUSDT', MarketTurn.none('No turn detected'))
        assert len(log) == 0
