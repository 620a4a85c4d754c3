"""
Market turn and regime-flip models.

A market turn is a single best reversal signal for one timeframe: either a
major regime reversal (EMA20/EMA50 cross) or a micro-turn (short-window
candle pattern / exhaustion). Confidence is a fixed constant per detection
rule, not a continuous estimate.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TurnDirection(str, Enum):
    """Direction of a detected turn."""
    UPWARD = "upward"
    DOWNWARD = "downward"


class TurnType(str, Enum):
    """Detection rule that produced a turn."""
    MAJOR = "major"
    MICRO = "micro"


class PatternSignal(str, Enum):
    """Directional result of a candlestick classifier."""
    BULLISH = "bullish"
    BEARISH = "bearish"


@dataclass(frozen=True)
class MarketTurn:
    """
    Detected (or absent) market turn.

    Attributes:
        detected: Whether any turn fired
        direction: Turn direction, None when not detected
        type: Major or micro, None when not detected
        timestamp: Timestamp of the candle that completed the signal
        interval: Candle interval label passed through from the caller
        confidence: 0.85 for major, 0.70 for micro, 0 when not detected
        reason: Human-readable explanation (also set for the sentinel)
    """
    detected: bool
    direction: Optional[TurnDirection]
    type: Optional[TurnType]
    timestamp: Optional[int]
    interval: Optional[str]
    confidence: float
    reason: str

    @classmethod
    def none(cls, reason: str) -> 'MarketTurn':
        """No-turn sentinel."""
        return cls(
            detected=False,
            direction=None,
            type=None,
            timestamp=None,
            interval=None,
            confidence=0.0,
            reason=reason,
        )

    def to_dict(self) -> dict:
        return {
            'detected': self.detected,
            'direction': self.direction.value if self.direction else None,
            'type': self.type.value if self.type else None,
            'timestamp': self.timestamp,
            'interval': self.interval,
            'confidence': self.confidence,
            'reason': self.reason,
        }


@dataclass(frozen=True)
class TurnDebugInfo:
    major_turn_detected: bool
    micro_turn_detected: bool
    candle_count: int


@dataclass(frozen=True)
class UnifiedTurnResult:
    """
    Selected turn plus the latest EMA readings used to find it.

    The convenience properties mirror the selected turn so callers can read
    `result.detected` directly.
    """
    turn: MarketTurn
    ema20: Optional[float]
    ema50: Optional[float]
    debug_info: TurnDebugInfo = field(default_factory=lambda: TurnDebugInfo(False, False, 0))

    @property
    def detected(self) -> bool:
        return self.turn.detected

    @property
    def direction(self) -> Optional[TurnDirection]:
        return self.turn.direction

    @property
    def type(self) -> Optional[TurnType]:
        return self.turn.type

    @property
    def confidence(self) -> float:
        return self.turn.confidence


class MarketRegime(str, Enum):
    """EMA20/EMA50 regime classification."""
    BULL = "Bull"
    BEAR = "Bear"
    NEUTRAL = "Neutral"
    TRANSITION = "Transition"


class FlipDirection(str, Enum):
    """Direction of a confirmed regime flip."""
    BULL_TO_BEAR = "Bull→Bear"
    BEAR_TO_BULL = "Bear→Bull"


@dataclass(frozen=True)
class FlipDetectionResult:
    """
    Current regime and the most recent confirmed flip.

    Attributes:
        current_regime: Regime over the latest confirmation window
        last_flip_direction: Most recent confirmed flip, None if not found
        flip_timestamp: Timestamp of the first candle of the new regime
        ema20: Latest EMA20, None below warmup
        ema50: Latest EMA50, None below warmup
        confirmation_candles: Confirmation period used
    """
    current_regime: MarketRegime
    last_flip_direction: Optional[FlipDirection]
    flip_timestamp: Optional[int]
    ema20: Optional[float]
    ema50: Optional[float]
    confirmation_candles: int
