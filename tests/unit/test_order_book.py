"""
Unit tests for order book depth metrics.
"""

import pytest

from opportunity_engine.analysis.order_book import (
    calculate_cumulative_depth,
    calculate_depth_metrics,
    calculate_order_book_imbalance,
    detect_liquidity_walls,
    get_normalization_max,
)
from opportunity_engine.shared.models.data import OrderBookDepth, OrderBookLevel
from tests.fixtures.market_data import make_order_book

BIDS = [OrderBookLevel(99.0, 2.0), OrderBookLevel(98.0, 3.0)]
ASKS = [OrderBookLevel(101.0, 1.0), OrderBookLevel(102.0, 4.0)]


class TestDepthMetrics:
    """Tests for spread and depth readings."""

    def test_metrics(self):
        metrics = calculate_depth_metrics(BIDS, ASKS, display_limit=10)

        assert metrics.best_bid == 99.0
        assert metrics.best_ask == 101.0
        assert metrics.mid_price == pytest.approx(100.0)
        assert metrics.spread_absolute == pytest.approx(2.0)
        assert metrics.spread_percent == pytest.approx(2.0)
        assert metrics.bid_depth_total == pytest.approx(5.0)
        assert metrics.ask_depth_total == pytest.approx(5.0)
        assert metrics.depth_imbalance == pytest.approx(0.0)
        assert metrics.depth_imbalance_percent == pytest.approx(0.0)

    def test_display_limit(self):
        metrics = calculate_depth_metrics(BIDS, ASKS, display_limit=1)
        assert metrics.bid_depth_total == pytest.approx(2.0)
        assert metrics.depth_imbalance_percent == pytest.approx(100.0 / 3.0)

    def test_empty_side(self):
        assert calculate_depth_metrics([], ASKS, display_limit=10) is None
        assert calculate_depth_metrics(BIDS, [], display_limit=10) is None


class TestCumulativeDepth:
    """Tests for cumulative depth and normalisation."""

    def test_running_total(self):
        levels = calculate_cumulative_depth(BIDS)
        assert [level.cumulative for level in levels] == [2.0, 5.0]

    def test_normalization_max(self):
        bids = calculate_cumulative_depth(BIDS)
        asks = calculate_cumulative_depth(ASKS)
        assert get_normalization_max(bids, asks) == 5.0
        assert get_normalization_max([], []) == 0.0


class TestLiquidityWalls:
    """Tests for wall detection."""

    def test_walls_above_threshold(self):
        walls = detect_liquidity_walls(BIDS, ASKS, threshold_percent=50)
        assert [(w.price, w.is_bid) for w in walls] == [(99.0, True), (98.0, True), (102.0, False)]

    def test_empty_book(self):
        assert detect_liquidity_walls([], [], threshold_percent=50) == []


class TestImbalance:
    """Tests for the guarded bid/ask imbalance."""

    def test_bid_heavy(self):
        book = make_order_book(bids=[(99.0, 3.0)], asks=[(101.0, 1.0)])
        assert calculate_order_book_imbalance(book) == pytest.approx(0.5)

    def test_levels_limit(self):
        book = make_order_book(bids=[(99.0, 1.0), (98.0, 100.0)], asks=[(101.0, 1.0), (102.0, 1.0)])
        assert calculate_order_book_imbalance(book, levels=1) == pytest.approx(0.0)

    def test_guards(self):
        assert calculate_order_book_imbalance(None) == 0.0
        assert calculate_order_book_imbalance(OrderBookDepth()) == 0.0

    def test_from_exchange_payload(self):
        book = OrderBookDepth.from_dict({
            'bids': [['99.5', '4']],
            'asks': [['100.5', '4']],
            'lastUpdateId': 42,
        })
        assert book.last_update_id == 42
        assert calculate_order_book_imbalance(book) == pytest.approx(0.0)
