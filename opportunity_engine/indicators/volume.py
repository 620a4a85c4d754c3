"""
Volume Indicators Module

Implements:
- Volume ratio (latest volume versus rolling average)
- VWAP over a trailing window (typical price weighted)
- Volume spike detection (recent average versus preceding average)
"""

from typing import Sequence, Union
import numpy as np
import pandas as pd
import logging

from opportunity_engine.shared.models.data import CandleInput, candles_to_frame

logger = logging.getLogger(__name__)

VolumeInput = Union[Sequence[float], pd.Series, np.ndarray]


def compute_volume_ratio(volumes: VolumeInput, window: int = 20) -> float:
    """
    Latest volume divided by the average of the last `window` volumes.

    Returns 0.0 for empty input or a zero average.
    """
    values = np.asarray(volumes, dtype=float)
    if values.size == 0:
        return 0.0

    avg_volume = values[-window:].mean()
    if avg_volume <= 0:
        return 0.0
    return float(values[-1] / avg_volume)


def compute_vwap(candles: CandleInput, window: int = 20) -> float:
    """
    Volume-weighted average of the typical price (H+L+C)/3 over the last
    `window` candles.

    Returns 0.0 when the window carries no volume.
    """
    df = candles_to_frame(candles).tail(window)
    total_volume = float(df['volume'].sum())
    if total_volume <= 0:
        return 0.0

    typical = (df['high'] + df['low'] + df['close']) / 3
    return float((typical * df['volume']).sum() / total_volume)


def detect_volume_spike(
    volumes: VolumeInput,
    recent: int = 3,
    multiplier: float = 1.5,
) -> bool:
    """
    Detect a volume spike.

    True when the mean of the last `recent` volumes exceeds `multiplier`
    times the mean of all preceding volumes. Needs at least one preceding
    volume.
    """
    values = np.asarray(volumes, dtype=float)
    if values.size <= recent:
        return False

    recent_avg = values[-recent:].mean()
    prior_avg = values[:-recent].mean()
    return bool(recent_avg > prior_avg * multiplier)
