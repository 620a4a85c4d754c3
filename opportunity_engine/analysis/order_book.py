"""
Order Book Depth Metrics

Spread, depth and imbalance readings over an order-book snapshot, plus
cumulative depth and liquidity-wall detection. Bids are best (highest)
first and asks best (lowest) first.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
from loguru import logger

from opportunity_engine.shared.config.defaults import DEFAULT_WINDOWS
from opportunity_engine.shared.models.data import OrderBookDepth, OrderBookLevel


@dataclass(frozen=True)
class DepthMetrics:
    best_bid: float
    best_ask: float
    mid_price: float
    spread_absolute: float
    spread_percent: float
    bid_depth_total: float
    ask_depth_total: float
    depth_imbalance: float
    depth_imbalance_percent: float


@dataclass(frozen=True)
class CumulativeLevel:
    price: float
    quantity: float
    cumulative: float


@dataclass(frozen=True)
class LiquidityWall:
    price: float
    quantity: float
    is_bid: bool


def calculate_depth_metrics(
    bids: Sequence[OrderBookLevel],
    asks: Sequence[OrderBookLevel],
    display_limit: int,
) -> Optional[DepthMetrics]:
    """
    Spread and depth metrics over the top `display_limit` levels per side.

    Returns None when either side is empty.
    """
    if not bids or not asks:
        return None

    top_bids = list(bids[:display_limit])
    top_asks = list(asks[:display_limit])

    best_bid = top_bids[0].price
    best_ask = top_asks[0].price
    mid_price = (best_bid + best_ask) / 2
    spread = best_ask - best_bid
    spread_percent = (spread / mid_price) * 100 if mid_price > 0 else 0.0

    bid_total = sum(level.quantity for level in top_bids)
    ask_total = sum(level.quantity for level in top_asks)
    total = bid_total + ask_total
    imbalance = bid_total - ask_total

    return DepthMetrics(
        best_bid=best_bid,
        best_ask=best_ask,
        mid_price=mid_price,
        spread_absolute=spread,
        spread_percent=spread_percent,
        bid_depth_total=bid_total,
        ask_depth_total=ask_total,
        depth_imbalance=imbalance,
        depth_imbalance_percent=(imbalance / total) * 100 if total > 0 else 0.0,
    )


def calculate_cumulative_depth(levels: Sequence[OrderBookLevel]) -> List[CumulativeLevel]:
    """Running quantity total from the best level outwards."""
    cumulative = 0.0
    result = []
    for level in levels:
        cumulative += level.quantity
        result.append(CumulativeLevel(level.price, level.quantity, cumulative))
    return result


def get_normalization_max(
    bids: Sequence[CumulativeLevel],
    asks: Sequence[CumulativeLevel],
) -> float:
    """Largest cumulative depth across both sides (0 when both are empty)."""
    max_bid = bids[-1].cumulative if bids else 0.0
    max_ask = asks[-1].cumulative if asks else 0.0
    return max(max_bid, max_ask)


def detect_liquidity_walls(
    bids: Sequence[OrderBookLevel],
    asks: Sequence[OrderBookLevel],
    threshold_percent: float,
) -> List[LiquidityWall]:
    """
    Levels whose quantity is at least `threshold_percent` of the largest
    quantity on either side. Bid walls come first, each side in book order.
    """
    all_levels = list(bids) + list(asks)
    if not all_levels:
        return []

    threshold = max(level.quantity for level in all_levels) * (threshold_percent / 100)
    walls = [LiquidityWall(b.price, b.quantity, True) for b in bids if b.quantity >= threshold]
    walls += [LiquidityWall(a.price, a.quantity, False) for a in asks if a.quantity >= threshold]
    return walls


def calculate_order_book_imbalance(
    order_book: Optional[OrderBookDepth],
    levels: int = DEFAULT_WINDOWS.order_book_levels,
) -> float:
    """
    Bid/ask quantity imbalance over the top `levels` of each side.

    (bid - ask) / (bid + ask), in [-1, 1]. Returns 0.0 with no book or no
    quantity.
    """
    if order_book is None:
        return 0.0

    bid_volume = sum(level.quantity for level in order_book.bids[:levels])
    ask_volume = sum(level.quantity for level in order_book.asks[:levels])
    total = bid_volume + ask_volume
    if total <= 0:
        logger.debug("Order book carries no quantity in the top levels")
        return 0.0
    return (bid_volume - ask_volume) / total
