"""
Market Flip Detection

Closed-candle Bull/Bear regime classification from EMA20/EMA50 alignment,
plus the most recent confirmed regime flip.

Rules:
- Neutral: fewer than 50 candles
- Bull / Bear: at least `confirmation_period` of the last
  `confirmation_period + 1` aligned points on that side
- Transition: otherwise
"""

from typing import Optional, Sequence
import numpy as np
from loguru import logger

from opportunity_engine.analysis.market_turn import aligned_ema_spread
from opportunity_engine.indicators.trend import ema, last_value
from opportunity_engine.indicators.validation_utils import validate_candles
from opportunity_engine.shared.config.defaults import DEFAULT_TURN_THRESHOLDS, DEFAULT_WINDOWS
from opportunity_engine.shared.models.data import Candle, closes_of
from opportunity_engine.shared.models.turns import FlipDetectionResult, FlipDirection, MarketRegime


def detect_market_flip(
    candles: Sequence[Candle],
    confirmation_period: int = DEFAULT_TURN_THRESHOLDS.flip_confirmation_period,
) -> FlipDetectionResult:
    """
    Detect the current regime and the most recent confirmed flip.

    The most recent flip is the latest side change whose newer side held
    for at least `confirmation_period` aligned points. Points where EMA20
    is not above EMA50 count as the bear side when tracking runs.

    Args:
        candles: Closed candles oldest first
        confirmation_period: Points needed to confirm a side (default 3)

    Returns:
        FlipDetectionResult

    Raises:
        ValueError: If confirmation_period is not positive
        DataValidationError: If candles contain non-finite or invalid values
    """
    if confirmation_period <= 0:
        raise ValueError(f"confirmation_period must be positive, got {confirmation_period}")

    validate_candles(candles)

    if len(candles) < DEFAULT_TURN_THRESHOLDS.major_min_candles:
        return FlipDetectionResult(
            current_regime=MarketRegime.NEUTRAL,
            last_flip_direction=None,
            flip_timestamp=None,
            ema20=None,
            ema50=None,
            confirmation_candles=0,
        )

    closes = closes_of(candles)
    ema20 = ema(closes, DEFAULT_WINDOWS.ema_fast)
    ema50 = ema(closes, DEFAULT_WINDOWS.ema_slow)
    spread = aligned_ema_spread(ema20, ema50)
    values = spread.to_numpy()
    positions = spread.index

    recent = values[-(confirmation_period + 1):]
    bullish_count = int(np.sum(recent > 0))
    bearish_count = int(np.sum(recent < 0))
    if bullish_count >= confirmation_period:
        regime = MarketRegime.BULL
    elif bearish_count >= confirmation_period:
        regime = MarketRegime.BEAR
    else:
        regime = MarketRegime.TRANSITION

    flip_direction: Optional[FlipDirection] = None
    flip_timestamp: Optional[int] = None

    # Walk runs of same-side points backwards from the latest
    bullish = values > 0
    run_length = 1
    for i in range(len(bullish) - 2, -1, -1):
        if bullish[i] == bullish[i + 1]:
            run_length += 1
            continue
        if run_length >= confirmation_period:
            flip_direction = FlipDirection.BEAR_TO_BULL if bullish[i + 1] else FlipDirection.BULL_TO_BEAR
            flip_timestamp = candles[int(positions[i + 1])].timestamp
            break
        run_length = 1

    if flip_direction is not None:
        logger.debug(f"Last confirmed flip: {flip_direction.value} at {flip_timestamp} (regime {regime.value})")

    return FlipDetectionResult(
        current_regime=regime,
        last_flip_direction=flip_direction,
        flip_timestamp=flip_timestamp,
        ema20=last_value(ema20),
        ema50=last_value(ema50),
        confirmation_candles=confirmation_period,
    )


def get_flip_key(symbol: str, direction: Optional[FlipDirection], timestamp: Optional[int]) -> str:
    """Stable deduplication key for a flip event ("" when incomplete)."""
    if direction is None or timestamp is None:
        return ''
    return f"{symbol}-{direction.value}-{timestamp}"
