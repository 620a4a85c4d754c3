"""
Market Turn Detection

Produces a single best reversal signal per timeframe:
- Major turn: EMA20/EMA50 cross confirmed by the following aligned point(s)
- Micro turn: engulfing, hammer/shooting-star or exhaustion at the recent
  extreme on the last 10 candles

Major takes priority over micro. Absence of a signal is returned as a
no-turn sentinel, never raised. The detector keeps no state between calls;
deduplicating repeated detections is the caller's job (see `TurnEventLog`).
"""

from typing import Optional, Sequence, Set, Tuple
import pandas as pd
from loguru import logger

from opportunity_engine.indicators.trend import ema, last_value
from opportunity_engine.indicators.validation_utils import validate_candles
from opportunity_engine.shared.config.defaults import (
    DEFAULT_TURN_THRESHOLDS,
    DEFAULT_WINDOWS,
    TurnThresholds,
)
from opportunity_engine.shared.models.data import Candle, closes_of
from opportunity_engine.shared.models.turns import (
    MarketTurn,
    TurnDebugInfo,
    TurnDirection,
    TurnType,
    UnifiedTurnResult,
)


def aligned_ema_spread(ema_fast: pd.Series, ema_slow: pd.Series) -> pd.Series:
    """Fast minus slow EMA over the candle indices both series cover."""
    fast, slow = ema_fast.align(ema_slow, join='inner')
    return fast - slow


def detect_ema_cross(
    ema_fast: pd.Series,
    ema_slow: pd.Series,
    window: int = DEFAULT_TURN_THRESHOLDS.major_cross_window,
    confirmation_points: int = DEFAULT_TURN_THRESHOLDS.major_confirmation_points,
) -> Optional[Tuple[TurnDirection, int]]:
    """
    Find the most recent confirmed fast/slow EMA cross.

    A bullish cross at aligned point `c` requires fast <= slow at `c - 1`
    and fast > slow at every point from `c` to the latest, with at least
    `confirmation_points` points on the new side. The cross must fall within
    the last `window` aligned points. A cross that reverses on a later point
    is never reported. Bearish mirrors with >= / <.

    Returns:
        (direction, candle index completing the confirmation) or None
    """
    spread = aligned_ema_spread(ema_fast, ema_slow)
    values = spread.to_numpy()
    positions = spread.index
    m = len(values)
    if m < confirmation_points + 1:
        return None

    earliest = max(1, m - window)
    latest = m - confirmation_points
    for c in range(latest, earliest - 1, -1):
        tail = values[c:]
        if values[c - 1] <= 0 and (tail > 0).all():
            return TurnDirection.UPWARD, int(positions[c + confirmation_points - 1])
        if values[c - 1] >= 0 and (tail < 0).all():
            return TurnDirection.DOWNWARD, int(positions[c + confirmation_points - 1])
    return None


def detect_major_turn(
    candles: Sequence[Candle],
    interval: str,
    thresholds: TurnThresholds = DEFAULT_TURN_THRESHOLDS,
) -> MarketTurn:
    """Major regime reversal from a confirmed EMA20/EMA50 cross."""
    if len(candles) < thresholds.major_min_candles:
        return MarketTurn.none('Insufficient data for major turn detection')

    closes = closes_of(candles)
    cross = detect_ema_cross(
        ema(closes, DEFAULT_WINDOWS.ema_fast),
        ema(closes, DEFAULT_WINDOWS.ema_slow),
        window=thresholds.major_cross_window,
        confirmation_points=thresholds.major_confirmation_points,
    )
    if cross is None:
        return MarketTurn.none('No major turn detected')

    direction, index = cross
    side = 'above' if direction == TurnDirection.UPWARD else 'below'
    return MarketTurn(
        detected=True,
        direction=direction,
        type=TurnType.MAJOR,
        timestamp=candles[index].timestamp,
        interval=interval,
        confidence=thresholds.major_confidence,
        reason=f'EMA20 crossed {side} EMA50 with confirmation',
    )


def detect_micro_turn(
    candles: Sequence[Candle],
    interval: str,
    thresholds: TurnThresholds = DEFAULT_TURN_THRESHOLDS,
) -> MarketTurn:
    """
    Micro-turn on the last `micro_window` candles.

    Bullish rules are evaluated before bearish ones; within a direction the
    first matching rule names the reason.
    """
    if len(candles) < thresholds.micro_min_candles:
        return MarketTurn.none('Insufficient data for micro-turn detection')

    recent = list(candles[-thresholds.micro_window:])
    last = recent[-1]
    prev = recent[-2]
    closes = [c.close for c in recent]
    recent_high = max(c.high for c in recent[-thresholds.extreme_window:])
    recent_low = min(c.low for c in recent[-thresholds.extreme_window:])
    tolerance = thresholds.extreme_tolerance

    bullish_engulfing = (
        prev.close < prev.open and last.close > last.open
        and last.close > prev.open and last.open < prev.close
    )
    hammer = (
        last.close > last.open
        and (last.high - last.close) < (last.close - last.open) * 0.3
        and (last.close - last.low) > (last.close - last.open) * 2
    )
    bullish_exhaustion = (
        closes[-3] < closes[-2] < closes[-1]
        and last.low <= recent_low * (1 + tolerance)
    )

    if bullish_engulfing or hammer or bullish_exhaustion:
        if bullish_engulfing:
            reason = 'Bullish engulfing pattern'
        elif hammer:
            reason = 'Hammer reversal pattern'
        else:
            reason = 'Bullish exhaustion at support'
        return MarketTurn(
            detected=True,
            direction=TurnDirection.UPWARD,
            type=TurnType.MICRO,
            timestamp=last.timestamp,
            interval=interval,
            confidence=thresholds.micro_confidence,
            reason=reason,
        )

    bearish_engulfing = (
        prev.close > prev.open and last.close < last.open
        and last.close < prev.open and last.open > prev.close
    )
    shooting_star = (
        last.close < last.open
        and (last.close - last.low) < (last.open - last.close) * 0.3
        and (last.high - last.open) > (last.open - last.close) * 2
    )
    bearish_exhaustion = (
        closes[-3] > closes[-2] > closes[-1]
        and last.high >= recent_high * (1 - tolerance)
    )

    if bearish_engulfing or shooting_star or bearish_exhaustion:
        if bearish_engulfing:
            reason = 'Bearish engulfing pattern'
        elif shooting_star:
            reason = 'Shooting star reversal pattern'
        else:
            reason = 'Bearish exhaustion at resistance'
        return MarketTurn(
            detected=True,
            direction=TurnDirection.DOWNWARD,
            type=TurnType.MICRO,
            timestamp=last.timestamp,
            interval=interval,
            confidence=thresholds.micro_confidence,
            reason=reason,
        )

    return MarketTurn.none('No micro-turn detected')


def detect_unified_market_turn(
    candles: Sequence[Candle],
    interval: str,
    thresholds: TurnThresholds = DEFAULT_TURN_THRESHOLDS,
) -> UnifiedTurnResult:
    """
    Detect the best market turn for one timeframe.

    Args:
        candles: Closed candles oldest first
        interval: Interval label passed through to the turn
        thresholds: Detection thresholds

    Returns:
        UnifiedTurnResult with the selected turn and latest EMA readings

    Raises:
        DataValidationError: If candles contain non-finite or invalid values
    """
    validate_candles(candles)

    major = detect_major_turn(candles, interval, thresholds)
    micro = detect_micro_turn(candles, interval, thresholds)

    closes = closes_of(candles)
    ema20 = last_value(ema(closes, DEFAULT_WINDOWS.ema_fast))
    ema50 = last_value(ema(closes, DEFAULT_WINDOWS.ema_slow))

    if major.detected:
        selected = major
    elif micro.detected:
        selected = micro
    else:
        selected = MarketTurn.none('No turn detected')

    if selected.detected:
        logger.debug(
            f"Turn on {interval}: {selected.type.value} {selected.direction.value} "
            f"({selected.reason})"
        )

    return UnifiedTurnResult(
        turn=selected,
        ema20=ema20,
        ema50=ema50,
        debug_info=TurnDebugInfo(
            major_turn_detected=major.detected,
            micro_turn_detected=micro.detected,
            candle_count=len(candles),
        ),
    )


def get_turn_event_key(symbol: str, turn: MarketTurn) -> str:
    """Stable deduplication key for a detected turn ("" when not detected)."""
    if not turn.detected or turn.timestamp is None or turn.direction is None or turn.type is None:
        return ''
    return f"{symbol}-{turn.direction.value}-{turn.type.value}-{turn.interval}-{turn.timestamp}"


class TurnEventLog:
    """
    Caller-side record of emitted turn events.

    `register` returns True only the first time a (symbol, direction, type,
    interval, timestamp) tuple is seen, so a caller polling the detector
    reports each turn once.
    """

    def __init__(self):
        self._seen: Set[str] = set()

    def register(self, symbol: str, turn: MarketTurn) -> bool:
        key = get_turn_event_key(symbol, turn)
        if not key or key in self._seen:
            return False
        self._seen.add(key)
        return True

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, key: str) -> bool:
        return key in self._seen
