"""
Unit tests for opportunity ranking and asset analysis.

Tests:
- Ranking order, tie-break and truncation
- Sequential and thread-pool ranking agree
- Invalid symbols are skipped, not fatal
- Early confluence -> setup -> calibration enrichment
"""

import math

import pytest

from opportunity_engine.services.opportunity_service import (
    OpportunityService,
    configure_opportunity_service,
    get_opportunity_service,
    rank_opportunities,
    sort_scores,
)
from opportunity_engine.shared.config.strategy_modalities import StrategyModality
from opportunity_engine.shared.models.scoring import ConditionCheck, OpportunityScore
from tests.fixtures.market_data import (
    candles_from_closes,
    generate_random_walk_candles,
    linear_closes,
    make_asset,
    make_candle,
    single_timeframe,
)


def _universe():
    shared = generate_random_walk_candles(80, seed=21)
    broken = generate_random_walk_candles(80, seed=22)
    broken[40] = make_candle(40, 100.0, 101.0, 99.0, math.nan)
    return {
        'ETHUSDT': single_timeframe(shared),
        'BTCUSDT': single_timeframe(shared),
        'AAAUSDT': single_timeframe(generate_random_walk_candles(30)),
        'BADUSDT': single_timeframe(broken),
    }


def _score(symbol, score):
    return OpportunityScore(
        symbol=symbol,
        score=score,
        conditions=[ConditionCheck('x', 'X', score > 0)],
        narrative='n',
    )


class TestSortScores:
    """Tests for ranking order."""

    def test_score_desc_then_symbol_asc(self):
        ranked = sort_scores([_score('SOL', 40), _score('ETH', 70), _score('BTC', 70), _score('ADA', 10)])
        assert [s.symbol for s in ranked] == ['BTC', 'ETH', 'SOL', 'ADA']


class TestRankOpportunities:
    """Tests for rank_opportunities."""

    def test_ties_broken_by_symbol(self):
        ranked = rank_opportunities(StrategyModality.SCALPING, _universe())
        symbols = [s.symbol for s in ranked]

        # Identical candles give identical scores
        assert ranked[0].score == ranked[1].score
        assert symbols[:2] == ['BTCUSDT', 'ETHUSDT']
        assert symbols[-1] == 'AAAUSDT'
        assert ranked[-1].score == 0

    def test_invalid_symbol_is_skipped(self):
        ranked = rank_opportunities('scalping', _universe())
        assert 'BADUSDT' not in [s.symbol for s in ranked]
        assert len(ranked) == 3

    def test_limit(self):
        assert len(rank_opportunities(StrategyModality.SCALPING, _universe(), limit=2)) == 2
        assert rank_opportunities(StrategyModality.SCALPING, _universe(), limit=0) == []

    def test_thread_pool_matches_sequential(self):
        sequential = rank_opportunities(StrategyModality.SWING_TRADE, _universe())
        pooled = rank_opportunities(StrategyModality.SWING_TRADE, _universe(), max_workers=4)
        assert [s.to_dict() for s in pooled] == [s.to_dict() for s in sequential]

    @pytest.mark.parametrize("workers", [0, -1])
    def test_non_positive_workers_score_sequentially(self, workers):
        sequential = rank_opportunities(StrategyModality.SCALPING, _universe())
        ranked = rank_opportunities(StrategyModality.SCALPING, _universe(), max_workers=workers)
        assert [s.to_dict() for s in ranked] == [s.to_dict() for s in sequential]

    def test_unknown_modality(self):
        with pytest.raises(ValueError):
            rank_opportunities('martingale', _universe())


class TestOpportunityService:
    """Tests for the service wrapper."""

    def test_rank_uses_default_limit(self):
        service = OpportunityService(limit=1)
        ranked = service.rank(StrategyModality.POSITION_TRADE, _universe())
        assert len(ranked) == 1

    def test_analyze_asset_enriches_snapshot(self):
        candles_1m = candles_from_closes(linear_closes(10, 100.0, 0.2), [1000.0] * 7 + [3000.0] * 3)
        candles_5m = candles_from_closes(linear_closes(6, 100.0, 0.3))
        asset = make_asset(volume=100e6, volume_market_cap_ratio=0.5)

        enriched = OpportunityService().analyze_asset(asset, candles_1m, candles_5m)

        assert enriched.symbol == asset.symbol
        assert enriched.early_confluence is not None
        assert enriched.early_confluence.volume_spike
        assert enriched.institutional_setup is not None
        assert enriched.institutional_setup.has_liquidity
        assert enriched.institutional_calibration is not None
        assert asset.early_confluence is None

    def test_analyze_assets_passes_through_missing_windows(self):
        asset = make_asset('XRPUSDT')
        results = OpportunityService().analyze_assets([asset], {})
        assert results['XRPUSDT'] is asset

    def test_configured_singleton(self):
        service = configure_opportunity_service(limit=5)
        assert get_opportunity_service() is service
