"""
Trend-Pullback Checklist

Six-step execution checklist for a trend pullback on a single timeframe:
1. EMA20/50 alignment on the last two aligned points
2. Pullback to the EMA20 value zone, beyond the recent swing extreme
3. Reversal candle (engulfing or pin bar) in the trend direction
4. Entry at the close when steps 1-3 hold
5. Stop 0.5% beyond the last two swing extremes
6. Target at 1:2 risk-reward
"""

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Sequence
from loguru import logger

from opportunity_engine.indicators.patterns import (
    classify_engulfing,
    classify_pin_bar,
    detect_swing_high_low,
)
from opportunity_engine.indicators.trend import ema
from opportunity_engine.indicators.validation_utils import validate_candles
from opportunity_engine.shared.config.defaults import DEFAULT_SCORING, DEFAULT_WINDOWS
from opportunity_engine.shared.models.data import Candle, closes_of
from opportunity_engine.shared.models.turns import PatternSignal


ChecklistStatus = Literal['met', 'not-met', 'unknown']
TrendDirection = Literal['bullish', 'bearish', 'neutral']

STEP_LABELS = (
    'EMA20/50 Alignment',
    'Pullback to Value Zone',
    'Reversal Candle',
    'Entry Direction',
    'Stop Loss',
    'Target Level',
)

PULLBACK_MAX_DISTANCE = 0.02
STOP_BUFFER = 0.005
REWARD_RATIO = 2


@dataclass(frozen=True)
class ChecklistSignal:
    step: int
    label: str
    status: ChecklistStatus
    details: str


@dataclass(frozen=True)
class ChecklistResult:
    """Checklist steps plus the derived trade levels (None until reached)."""
    signals: List[ChecklistSignal] = field(default_factory=list)
    trend_direction: TrendDirection = 'neutral'
    entry_price: Optional[float] = None
    stop_loss: Optional[float] = None
    target: Optional[float] = None

    @property
    def met_steps(self) -> int:
        return sum(1 for s in self.signals if s.status == 'met')


def _signal(step: int, status: ChecklistStatus, details: str) -> ChecklistSignal:
    return ChecklistSignal(step=step, label=STEP_LABELS[step - 1], status=status, details=details)


def calculate_checklist_signals(candles: Sequence[Candle]) -> ChecklistResult:
    """
    Evaluate the six-step trend-pullback checklist.

    Below 50 candles every step is 'unknown'.

    Raises:
        DataValidationError: If candles contain non-finite or invalid values
    """
    validate_candles(candles)

    if len(candles) < DEFAULT_SCORING.min_candles:
        return ChecklistResult(
            signals=[_signal(step, 'unknown', 'Insufficient data') for step in range(1, 7)],
        )

    closes = closes_of(candles)
    ema20 = ema(closes, DEFAULT_WINDOWS.ema_fast)
    ema50 = ema(closes, DEFAULT_WINDOWS.ema_slow)
    signals: List[ChecklistSignal] = []
    trend: TrendDirection = 'neutral'
    entry_price: Optional[float] = None
    stop_loss: Optional[float] = None
    target: Optional[float] = None

    # Step 1: two consecutive aligned points (needs >= 51 candles for a previous EMA50)
    if len(ema50) >= 2:
        fast_now, fast_prev = ema20.iloc[-1], ema20.iloc[-2]
        slow_now, slow_prev = ema50.iloc[-1], ema50.iloc[-2]
        if fast_now > slow_now and fast_prev > slow_prev:
            trend = 'bullish'
            signals.append(_signal(1, 'met', 'Bullish trend: EMA20 above EMA50'))
        elif fast_now < slow_now and fast_prev < slow_prev:
            trend = 'bearish'
            signals.append(_signal(1, 'met', 'Bearish trend: EMA20 below EMA50'))
        else:
            signals.append(_signal(1, 'not-met', 'No clear trend alignment'))
    else:
        signals.append(_signal(1, 'unknown', 'Insufficient data for EMA calculation'))

    # Step 2: pullback to value zone
    swings = detect_swing_high_low(candles, DEFAULT_WINDOWS.swing_lookback)
    current = candles[-1]
    current_ema20 = float(ema20.iloc[-1])
    distance_to_ema = abs(current.close - current_ema20) / current.close
    pullback = False
    if trend == 'bullish' and swings.swing_lows:
        recent_low = min(candles[i].low for i in swings.swing_lows[-3:])
        pullback = distance_to_ema < PULLBACK_MAX_DISTANCE and current.close > recent_low
    elif trend == 'bearish' and swings.swing_highs:
        recent_high = max(candles[i].high for i in swings.swing_highs[-3:])
        pullback = distance_to_ema < PULLBACK_MAX_DISTANCE and current.close < recent_high

    if pullback:
        signals.append(_signal(2, 'met', f'Price near EMA20 ({current_ema20:.2f})'))
    else:
        signals.append(_signal(2, 'not-met', 'Waiting for pullback to value zone'))

    # Step 3: reversal candle in trend direction
    engulfing = classify_engulfing(candles[-2], current)
    pin_bar = classify_pin_bar(current)
    expected = {'bullish': PatternSignal.BULLISH, 'bearish': PatternSignal.BEARISH}.get(trend)
    reversal = expected is not None and expected in (engulfing, pin_bar)
    if reversal:
        kind = 'engulfing' if engulfing == expected else 'pin bar'
        signals.append(_signal(3, 'met', f'{trend.capitalize()} {kind} detected'))
    else:
        signals.append(_signal(3, 'not-met', 'No reversal pattern detected'))

    # Step 4: entry
    if trend != 'neutral' and pullback and reversal:
        entry_price = current.close
        signals.append(_signal(4, 'met', f'Enter {trend} at {entry_price:.2f}'))
    else:
        signals.append(_signal(4, 'not-met', 'Conditions not met for entry'))

    # Step 5: stop beyond the last two swing extremes
    if entry_price is None:
        signals.append(_signal(5, 'not-met', 'Entry not confirmed'))
    elif trend == 'bullish' and swings.swing_lows:
        stop_loss = min(candles[i].low for i in swings.swing_lows[-2:]) * (1 - STOP_BUFFER)
        signals.append(_signal(5, 'met', f'Stop at {stop_loss:.2f} (below swing low)'))
    elif trend == 'bearish' and swings.swing_highs:
        stop_loss = max(candles[i].high for i in swings.swing_highs[-2:]) * (1 + STOP_BUFFER)
        signals.append(_signal(5, 'met', f'Stop at {stop_loss:.2f} (above swing high)'))
    else:
        signals.append(_signal(5, 'unknown', 'Unable to determine stop level'))

    # Step 6: target at fixed risk-reward
    if entry_price is not None and stop_loss is not None:
        risk = abs(entry_price - stop_loss)
        if trend == 'bullish':
            target = entry_price + risk * REWARD_RATIO
        else:
            target = entry_price - risk * REWARD_RATIO
        signals.append(_signal(6, 'met', f'Target at {target:.2f} (1:{REWARD_RATIO} R:R)'))
    else:
        signals.append(_signal(6, 'not-met', 'Entry and stop required for target'))

    logger.debug(f"Checklist: trend={trend}, {sum(s.status == 'met' for s in signals)}/6 steps met")

    return ChecklistResult(
        signals=signals,
        trend_direction=trend,
        entry_price=entry_price,
        stop_loss=stop_loss,
        target=target,
    )
