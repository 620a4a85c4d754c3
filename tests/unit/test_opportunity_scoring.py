"""
Unit tests for the opportunity scoring engine.

Tests:
- Insufficient-data policy and boundary validation
- Dispatch coverage and per-modality rule budgets
- Concrete scorer outcomes on constructed breakouts
- Narrative tiers and score clamping
"""

import math

import pytest

from opportunity_engine.indicators.validation_utils import NonFiniteError
from opportunity_engine.shared.config.strategy_modalities import (
    MODALITY_RULE_POINTS,
    StrategyModality,
    get_modality_label,
)
from opportunity_engine.shared.models.data import MarketData
from opportunity_engine.shared.models.scoring import ConditionCheck, RuleOutcome
from opportunity_engine.shared.utils.error_policy import enforce_complete_score
from opportunity_engine.strategy.opportunity.engine import fold_outcomes, generate_narrative, score_opportunity
from opportunity_engine.strategy.opportunity.scorers import SCORERS
from tests.fixtures.market_data import (
    candles_from_closes,
    generate_random_walk_candles,
    make_candle,
    make_order_book,
    single_timeframe,
)


def _breakout_candles():
    """59 flat candles at 100 then a full-bodied close at 110 on 10x volume."""
    closes = [100.0] * 59 + [110.0]
    volumes = [1000.0] * 59 + [10000.0]
    return candles_from_closes(closes, volumes)


class TestInsufficientData:
    """Tests for the < 50 candle policy."""

    def test_short_primary(self):
        result = score_opportunity('BTCUSDT', StrategyModality.SCALPING, single_timeframe(generate_random_walk_candles(49)))

        assert result.score == 0
        assert result.conditions == [ConditionCheck(id='data', label='Insufficient data', met=False)]
        assert result.narrative == 'Insufficient market data for analysis'
        assert result.timeframes == ['3m']

    def test_primary_is_first_timeframe(self):
        data = {
            '3m': MarketData(candles=generate_random_walk_candles(20), interval='3m'),
            '15m': MarketData(candles=generate_random_walk_candles(100), interval='15m'),
        }
        result = score_opportunity('BTCUSDT', 'swingTrade', data)
        assert result.score == 0
        assert result.timeframes == ['3m', '15m']

    def test_no_timeframes(self):
        result = score_opportunity('BTCUSDT', StrategyModality.DAY_TRADE, {})
        assert result.score == 0
        assert result.timeframes == []
        enforce_complete_score(result)


class TestBoundary:
    """Tests for modality parsing and candle validation."""

    def test_unknown_modality(self):
        with pytest.raises(ValueError):
            score_opportunity('BTCUSDT', 'martingale', single_timeframe(generate_random_walk_candles(60)))

    def test_modality_string_is_parsed(self):
        data = single_timeframe(generate_random_walk_candles(60))
        by_string = score_opportunity('BTCUSDT', 'dayTrade', data)
        by_enum = score_opportunity('BTCUSDT', StrategyModality.DAY_TRADE, data)
        assert by_string == by_enum

    def test_invalid_secondary_timeframe_raises(self):
        secondary = generate_random_walk_candles(60, seed=3)
        secondary[5] = make_candle(5, 100.0, 101.0, 99.0, math.nan)
        data = {
            '3m': MarketData(candles=generate_random_walk_candles(60), interval='3m'),
            '15m': MarketData(candles=secondary, interval='15m'),
        }
        with pytest.raises(NonFiniteError):
            score_opportunity('BTCUSDT', StrategyModality.SCALPING, data)


class TestDispatch:
    """Tests for the modality dispatch table."""

    def test_every_modality_has_a_scorer(self):
        assert set(SCORERS) == set(StrategyModality)
        assert set(MODALITY_RULE_POINTS) == set(StrategyModality)

    @pytest.mark.parametrize("modality", list(StrategyModality))
    def test_rule_budget_within_ceiling(self, modality):
        assert sum(MODALITY_RULE_POINTS[modality].values()) <= 100

    @pytest.mark.parametrize("modality", list(StrategyModality))
    def test_every_rule_reports_a_condition(self, modality):
        data = single_timeframe(generate_random_walk_candles(120, seed=11))
        result = score_opportunity('ETHUSDT', modality, data)

        enforce_complete_score(result)
        assert 0 <= result.score <= 100
        assert [c.id for c in result.conditions] == list(MODALITY_RULE_POINTS[modality])

    @pytest.mark.parametrize("modality", list(StrategyModality))
    def test_deterministic(self, modality):
        data = single_timeframe(generate_random_walk_candles(80, seed=5))
        first = score_opportunity('SOLUSDT', modality, data)
        second = score_opportunity('SOLUSDT', modality, data)
        assert first.to_dict() == second.to_dict()


class TestScorers:
    """Tests for concrete scorer outcomes."""

    def test_volume_breakout(self):
        result = score_opportunity('BTCUSDT', StrategyModality.VOLUME_BREAKOUT, single_timeframe(_breakout_candles()))

        assert result.score == 85
        assert [c.label for c in result.conditions] == ['Exceptional volume', 'Level breakout confirmed', 'Strong close']
        assert result.conditions[0].value == '6.90x'
        assert result.narrative == (
            'Excellent opportunity (85/100). 3/3 conditions met. High-probability Breakout with Volume setup.'
        )

    def test_trend_breakout(self):
        result = score_opportunity('BTCUSDT', StrategyModality.TREND_BREAKOUT, single_timeframe(_breakout_candles()))

        assert result.score == 60
        assert [c.met for c in result.conditions] == [True, True, False]
        assert result.conditions[0].label == 'Upside breakout'
        assert result.conditions[2].label == 'Away from breakout'

    def test_volume_climax_without_exhaustion(self):
        result = score_opportunity('BTCUSDT', StrategyModality.VOLUME_CLIMAX, single_timeframe(_breakout_candles()))

        assert result.score == 40
        assert [c.label for c in result.conditions] == ['Climax volume', 'No exhaustion', 'No immediate reversal']

    def test_institutional_breaker(self):
        result = score_opportunity(
            'BTCUSDT', StrategyModality.INSTITUTIONAL_BREAKER, single_timeframe(_breakout_candles()),
        )
        assert result.score == 55
        assert result.conditions[0].label == 'Upside structure break'
        assert result.conditions[2].label == 'Awaiting retest'

    def test_scalping_order_book_imbalance(self):
        book = make_order_book(bids=[(99.0, 3.0)], asks=[(101.0, 1.0)])
        data = single_timeframe(generate_random_walk_candles(60), order_book=book)
        result = score_opportunity('BTCUSDT', StrategyModality.SCALPING, data)

        by_id = {c.id: c for c in result.conditions}
        assert by_id['orderbook'].met
        assert by_id['orderbook'].value == '50.0%'
        assert by_id['liquidity'].label == 'Immediate execution available'

    def test_scalping_without_order_book(self):
        result = score_opportunity('BTCUSDT', StrategyModality.SCALPING, single_timeframe(generate_random_walk_candles(60)))
        by_id = {c.id: c for c in result.conditions}
        assert by_id['orderbook'].label == 'Order book balanced'
        assert not by_id['orderbook'].met


class TestNarrative:
    """Tests for narrative tiers and score folding."""

    def test_low(self):
        assert generate_narrative(29, 1, 4, StrategyModality.SCALPING) == (
            'Low opportunity score (29/100). Only 1/4 conditions met. Wait for better setup.'
        )

    def test_moderate(self):
        assert generate_narrative(30, 2, 4, StrategyModality.SCALPING).startswith('Moderate opportunity (30/100). 2/4')

    def test_good(self):
        label = get_modality_label(StrategyModality.SWING_TRADE)
        assert generate_narrative(60, 3, 4, StrategyModality.SWING_TRADE) == (
            f'Good opportunity (60/100). 3/4 conditions met. Strong setup for {label} strategy.'
        )

    def test_excellent(self):
        assert generate_narrative(80, 4, 4, StrategyModality.SCALPING).startswith('Excellent opportunity (80/100)')

    def test_fold_clamps(self):
        outcomes = [
            RuleOutcome(ConditionCheck('a', 'A', True), 80),
            RuleOutcome(ConditionCheck('b', 'B', True), 40),
            RuleOutcome(ConditionCheck('c', 'C', False), 0),
        ]
        score, conditions = fold_outcomes(outcomes)
        assert score == 100
        assert [c.id for c in conditions] == ['a', 'b', 'c']
