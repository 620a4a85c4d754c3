"""
Momentum Indicators Module

Implements:
- RSI (Relative Strength Index) with Wilder smoothing
- rsi_value: latest RSI with a short-run proxy

All series functions return pandas Series indexed by candle position.
"""

import numpy as np
import pandas as pd
import logging

from opportunity_engine.indicators.trend import PriceInput, as_price_series, empty_series

logger = logging.getLogger(__name__)


def rsi(prices: PriceInput, period: int = 14) -> pd.Series:
    """
    Compute Relative Strength Index (Wilder).

    Average gain/loss are seeded with the mean of the first `period` deltas
    and then updated as `avg = (avg * (period - 1) + x) / period`. When the
    average loss is zero the RSI is 100.

    Args:
        prices: Prices oldest first
        period: RSI period (default 14)

    Returns:
        pd.Series: RSI values (0-100) indexed `period .. len(prices)-1`,
        empty when fewer than `period + 1` prices are supplied

    Raises:
        ValueError: If period is not positive
    """
    if period <= 0:
        raise ValueError(f"RSI period must be positive, got {period}")

    values = as_price_series(prices)
    n = len(values)
    if n < period + 1:
        return empty_series()

    delta = values.diff().iloc[1:]
    gains = delta.clip(lower=0.0)
    losses = (-delta).clip(lower=0.0)

    index = range(period, n)
    alpha = 1.0 / period
    avg_gain = pd.Series(
        [gains.iloc[:period].mean()] + gains.iloc[period:].tolist(), index=index, dtype=float
    ).ewm(alpha=alpha, adjust=False).mean()
    avg_loss = pd.Series(
        [losses.iloc[:period].mean()] + losses.iloc[period:].tolist(), index=index, dtype=float
    ).ewm(alpha=alpha, adjust=False).mean()

    gain_values = avg_gain.to_numpy()
    loss_values = avg_loss.to_numpy()
    with np.errstate(divide='ignore', invalid='ignore'):
        result = 100.0 - 100.0 / (1.0 + gain_values / loss_values)
    result = np.where(loss_values == 0, 100.0, result)

    return pd.Series(np.clip(result, 0.0, 100.0), index=index, dtype=float)


def rsi_value(prices: PriceInput, period: int = 14) -> float:
    """
    Latest RSI reading.

    Below `period + 1` points this is NOT a true RSI: it degrades to the
    heuristic proxy `clamp(50 + 2 * pct_change, 0, 100)` where `pct_change`
    is the first-to-last percentage change. Fewer than two points give 50.
    """
    values = as_price_series(prices)
    if len(values) < period + 1:
        if len(values) < 2 or values.iloc[0] == 0:
            return 50.0
        pct_change = (values.iloc[-1] - values.iloc[0]) / values.iloc[0] * 100
        return float(min(100.0, max(0.0, 50.0 + 2.0 * pct_change)))

    return float(rsi(values, period).iloc[-1])
