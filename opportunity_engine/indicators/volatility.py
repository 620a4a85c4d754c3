"""
Volatility Indicators Module

Implements:
- ATR (Average True Range) with Wilder smoothing
"""

import pandas as pd
import logging

from opportunity_engine.indicators.trend import empty_series
from opportunity_engine.shared.models.data import CandleInput, candles_to_frame

logger = logging.getLogger(__name__)


def true_range(candles: CandleInput) -> pd.Series:
    """
    True range per candle.

    TR = max(high - low, |high - prev_close|, |low - prev_close|); the first
    candle has no previous close so its TR is its own high - low.
    """
    df = candles_to_frame(candles)
    if len(df) == 0:
        return empty_series()

    high = df['high'].astype(float).reset_index(drop=True)
    low = df['low'].astype(float).reset_index(drop=True)
    prev_close = df['close'].astype(float).reset_index(drop=True).shift()

    high_low = high - low
    high_close = (high - prev_close).abs()
    low_close = (low - prev_close).abs()
    # NaN from the shift is skipped by max, leaving high - low for the first bar
    return pd.concat([high_low, high_close, low_close], axis=1).max(axis=1)


def atr(candles: CandleInput, period: int = 14) -> pd.Series:
    """
    Compute Average True Range (ATR).

    Seeded with the simple average of the first `period` true ranges, then
    Wilder-smoothed with factor `1 / period`.

    Args:
        candles: Candles oldest first (sequence or OHLCV DataFrame)
        period: ATR period (default 14)

    Returns:
        pd.Series: ATR values indexed `period-1 .. len(candles)-1`, empty when
        fewer than `period` candles are supplied

    Raises:
        ValueError: If period is not positive
    """
    if period <= 0:
        raise ValueError(f"ATR period must be positive, got {period}")

    tr = true_range(candles)
    n = len(tr)
    if n < period:
        return empty_series()

    seeded = pd.Series(
        [tr.iloc[:period].mean()] + tr.iloc[period:].tolist(),
        index=range(period - 1, n),
        dtype=float,
    )
    return seeded.ewm(alpha=1.0 / period, adjust=False).mean()
