"""
Price Structure & Candlestick Patterns

Implements:
- Swing high/low detection over a symmetric lookback window
- Engulfing classification on a candle pair
- Pin bar classification on a single candle

Classifiers are total: degenerate candles (high == low, no body) return
None rather than raising.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import numpy as np
import logging

from opportunity_engine.shared.models.data import Candle, CandleInput, candles_to_frame
from opportunity_engine.shared.models.turns import PatternSignal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwingPoints:
    """Indices of swing highs and swing lows into the candle sequence."""
    swing_highs: List[int] = field(default_factory=list)
    swing_lows: List[int] = field(default_factory=list)


def detect_swing_high_low(candles: CandleInput, lookback: int = 5) -> SwingPoints:
    """
    Detect swing highs and lows.

    Index `i` is a swing high iff its high is strictly greater than every
    other high in `[i - lookback, i + lookback]`; swing lows mirror this on
    the lows. Candles within `lookback` of either end are never classified.

    Args:
        candles: Candles oldest first (sequence or OHLCV DataFrame)
        lookback: Candles to each side (default 5)

    Returns:
        SwingPoints with ascending indices

    Raises:
        ValueError: If lookback is not positive
    """
    if lookback <= 0:
        raise ValueError(f"lookback must be positive, got {lookback}")

    df = candles_to_frame(candles)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    n = len(highs)

    swing_highs: List[int] = []
    swing_lows: List[int] = []

    for i in range(lookback, n - lookback):
        window = slice(i - lookback, i + lookback + 1)
        neighbour_highs = np.delete(highs[window], lookback)
        neighbour_lows = np.delete(lows[window], lookback)

        if highs[i] > neighbour_highs.max():
            swing_highs.append(i)
        if lows[i] < neighbour_lows.min():
            swing_lows.append(i)

    return SwingPoints(swing_highs=swing_highs, swing_lows=swing_lows)


def classify_engulfing(prev: Candle, curr: Candle) -> Optional[PatternSignal]:
    """
    Classify an engulfing pair.

    Bullish: bearish-bodied `prev`, bullish-bodied `curr`, and
    `curr.open <= prev.close` and `curr.close >= prev.open`. Bearish mirrors.
    """
    if prev.is_bearish and curr.is_bullish:
        if curr.open <= prev.close and curr.close >= prev.open:
            return PatternSignal.BULLISH
    elif prev.is_bullish and curr.is_bearish:
        if curr.open >= prev.close and curr.close <= prev.open:
            return PatternSignal.BEARISH
    return None


def classify_pin_bar(candle: Candle) -> Optional[PatternSignal]:
    """
    Classify a pin bar.

    Bullish: lower wick > 2x body, lower wick > 60% of range, upper wick
    < body. Bearish swaps upper and lower.
    """
    total_range = candle.range
    if total_range <= 0:
        return None

    body = candle.body
    upper = candle.upper_wick
    lower = candle.lower_wick

    if lower > body * 2 and upper < body and lower > total_range * 0.6:
        return PatternSignal.BULLISH
    if upper > body * 2 and lower < body and upper > total_range * 0.6:
        return PatternSignal.BEARISH
    return None
