"""
Trend Indicators Module

Implements:
- EMA (Exponential Moving Average) seeded with a simple average

Indicator series are indexed by candle position, so a series with warmup
`n` starts at index `n - 1` and stays aligned with the candles it came from.
Inputs shorter than the warmup produce an empty series.
"""

from typing import Sequence, Union
import pandas as pd
import logging

logger = logging.getLogger(__name__)

PriceInput = Union[Sequence[float], pd.Series]


def as_price_series(prices: PriceInput) -> pd.Series:
    """Coerce a price sequence to a float Series with a positional index."""
    if isinstance(prices, pd.Series):
        return prices.astype(float).reset_index(drop=True)
    return pd.Series(list(prices), dtype=float)


def empty_series() -> pd.Series:
    return pd.Series([], dtype=float)


def ema(prices: PriceInput, period: int) -> pd.Series:
    """
    Compute Exponential Moving Average.

    The first value is the simple average of the first `period` prices;
    each following value is `(price - prev) * alpha + prev` with
    `alpha = 2 / (period + 1)`.

    Args:
        prices: Prices oldest first
        period: EMA period

    Returns:
        pd.Series: EMA values indexed `period-1 .. len(prices)-1`, empty when
        fewer than `period` prices are supplied

    Raises:
        ValueError: If period is not positive
    """
    if period <= 0:
        raise ValueError(f"EMA period must be positive, got {period}")

    values = as_price_series(prices)
    n = len(values)
    if n < period:
        return empty_series()

    seed = values.iloc[:period].mean()
    seeded = pd.Series(
        [seed] + values.iloc[period:].tolist(),
        index=range(period - 1, n),
        dtype=float,
    )
    return seeded.ewm(alpha=2.0 / (period + 1), adjust=False).mean()


def last_value(series: pd.Series):
    """Latest value of an indicator series, None when the series is empty."""
    if series.empty:
        return None
    return float(series.iloc[-1])
