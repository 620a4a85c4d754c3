"""
Early Confluence Detection

Fuses 1-minute and 5-minute candles into a 0-1 confluence score from five
weighted sub-signals:
- Short-interval momentum: both intervals up more than 0.5% first to last
- RSI momentum: RSI within [40, 70] on both intervals, 1m >= 5m - 5
- Volume spike: last-3 average 1m volume > 1.5x the preceding average
- Pattern formation: engulfing or long lower tail anywhere in the 1m window
- Institutional volume: 24h volume above $50M together with a volume spike

With fewer than 5 candles on either interval the empty reading is
returned. RSI falls back to its short-run proxy on windows shorter than 15
closes (see `rsi_value`).
"""

import math
from typing import Sequence
from loguru import logger

from opportunity_engine.indicators.momentum import rsi_value
from opportunity_engine.indicators.validation_utils import validate_candles
from opportunity_engine.indicators.volume import detect_volume_spike
from opportunity_engine.shared.config.institutional import (
    DEFAULT_EARLY_CONFLUENCE_THRESHOLDS,
    EARLY_CONFLUENCE_WEIGHTS,
    EarlyConfluenceThresholds,
)
from opportunity_engine.shared.models.confluence import EarlyConfluence, SignalStrength
from opportunity_engine.shared.models.data import Candle


def _percent_change(candles: Sequence[Candle]) -> float:
    first = candles[0].close
    return (candles[-1].close - first) / first * 100


def has_pattern_formation(candles: Sequence[Candle], wick_multiple: float = 2.0) -> bool:
    """Bullish engulfing pair or a bar whose lower tail exceeds `wick_multiple` x body."""
    for prev, curr in zip(candles, candles[1:]):
        if (
            prev.close < prev.open and curr.open < curr.close
            and curr.open <= prev.close and curr.close >= prev.open
        ):
            return True
        tail = abs(curr.low - min(curr.open, curr.close))
        if tail > curr.body * wick_multiple:
            return True
    return False


def classify_signal_strength(score: float, t: EarlyConfluenceThresholds = DEFAULT_EARLY_CONFLUENCE_THRESHOLDS) -> SignalStrength:
    if score >= t.strong:
        return SignalStrength.STRONG
    if score >= t.moderate:
        return SignalStrength.MODERATE
    if score >= t.weak:
        return SignalStrength.WEAK
    return SignalStrength.NONE


def confluence_label(score: float, t: EarlyConfluenceThresholds = DEFAULT_EARLY_CONFLUENCE_THRESHOLDS) -> str:
    if score >= t.strong:
        return 'Emerging Confluence'
    if score >= t.moderate:
        return 'Initial Formation'
    if score >= t.weak:
        return 'Growing Momentum'
    return 'none'


def detect_early_confluence(
    candles_1m: Sequence[Candle],
    candles_5m: Sequence[Candle],
    volume_24h: float,
    thresholds: EarlyConfluenceThresholds = DEFAULT_EARLY_CONFLUENCE_THRESHOLDS,
) -> EarlyConfluence:
    """
    Detect early confluence on short intervals.

    Args:
        candles_1m: Recent 1-minute candles oldest first
        candles_5m: Recent 5-minute candles oldest first
        volume_24h: 24h quote volume (USD)
        thresholds: Detector cutoffs

    Returns:
        EarlyConfluence. `timing_estimate` and `probability` are heuristics
        and only set when pattern formation and institutional volume both
        fire.

    Raises:
        DataValidationError: If candles contain non-finite or invalid values
    """
    validate_candles(candles_1m, name="candles_1m")
    validate_candles(candles_5m, name="candles_5m")

    if len(candles_1m) < thresholds.min_candles or len(candles_5m) < thresholds.min_candles:
        return EarlyConfluence.empty()

    change_1m = _percent_change(candles_1m)
    change_5m = _percent_change(candles_5m)
    short_interval_signal = (
        change_1m > thresholds.short_interval_change and change_5m > thresholds.short_interval_change
    )

    rsi_1m = rsi_value([c.close for c in candles_1m])
    rsi_5m = rsi_value([c.close for c in candles_5m])
    rsi_momentum = (
        thresholds.rsi_low <= rsi_1m <= thresholds.rsi_high
        and thresholds.rsi_low <= rsi_5m <= thresholds.rsi_high
        and rsi_1m >= rsi_5m - thresholds.rsi_tolerance
    )

    volume_spike = detect_volume_spike(
        [c.volume for c in candles_1m],
        recent=thresholds.volume_spike_recent,
        multiplier=thresholds.volume_spike_multiplier,
    )
    pattern_formation = has_pattern_formation(candles_1m, thresholds.wick_body_multiple)
    institutional_volume = volume_24h > thresholds.institutional_volume and volume_spike

    flags = {
        'short_interval_signal': short_interval_signal,
        'rsi_momentum': rsi_momentum,
        'volume_spike': volume_spike,
        'pattern_formation': pattern_formation,
        'institutional_volume': institutional_volume,
    }
    # Rounded so tier comparisons see exact sums of the weights
    score = round(math.fsum(EARLY_CONFLUENCE_WEIGHTS[name] for name, on in flags.items() if on), 4)

    timing_estimate = 0.0
    probability = 0.0
    projected_reversal = False
    if pattern_formation and institutional_volume:
        formation_speed = abs(change_1m) / 5
        timing_estimate = formation_speed * 2
        probability = score * thresholds.probability_factor
        projected_reversal = score >= thresholds.confirmation_score

    result = EarlyConfluence(
        confluence_score=score,
        signal_strength=classify_signal_strength(score, thresholds),
        projected_reversal=projected_reversal,
        confluence_label=confluence_label(score, thresholds),
        timing_estimate=timing_estimate,
        probability=probability,
        is_early_confirmed=score >= thresholds.confirmation_score and institutional_volume,
        **flags,
    )

    logger.debug(
        f"Early confluence {score:.2f} ({result.signal_strength.value}): "
        f"1m {change_1m:+.2f}% / 5m {change_5m:+.2f}%, RSI {rsi_1m:.1f}/{rsi_5m:.1f}"
    )
    return result
