"""
Default configuration for the opportunity engine.

All values are call-time parameters: nothing here is read from the
environment or from files.
"""
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class WindowSizes:
    """Indicator calculation window sizes."""
    # EMA periods
    ema_fast: int = 20
    ema_slow: int = 50

    # RSI/Momentum
    rsi_period: int = 14

    # Volatility
    atr_period: int = 14

    # Structure
    swing_lookback: int = 5

    # Volume
    volume_ma_period: int = 20
    vwap_period: int = 20

    # Order book levels used for imbalance
    order_book_levels: int = 10


@dataclass(frozen=True)
class TurnThresholds:
    """Market turn detection thresholds."""
    major_min_candles: int = 50
    micro_min_candles: int = 10
    micro_window: int = 10
    extreme_window: int = 5
    extreme_tolerance: float = 0.002  # 0.2% touch of the recent extreme

    # Aligned EMA points searched for the most recent cross
    major_cross_window: int = 5
    # Points on the new side including the cross point itself
    major_confirmation_points: int = 2

    major_confidence: float = 0.85
    micro_confidence: float = 0.70

    flip_confirmation_period: int = 3


@dataclass(frozen=True)
class ScoringDefaults:
    """Opportunity scoring and ranking defaults."""
    min_candles: int = 50
    ranking_limit: int = 20
    max_score: int = 100

    # Narrative tiers: below low -> low, below moderate -> moderate,
    # below good -> good, else excellent
    narrative_low: int = 30
    narrative_moderate: int = 60
    narrative_good: int = 80


DEFAULT_SYMBOLS: Tuple[str, ...] = (
    'BTCUSDT', 'ETHUSDT', 'BNBUSDT', 'SOLUSDT', 'XRPUSDT',
    'ADAUSDT', 'DOGEUSDT', 'MATICUSDT', 'DOTUSDT', 'AVAXUSDT',
    'LINKUSDT', 'UNIUSDT', 'ATOMUSDT', 'LTCUSDT', 'NEARUSDT',
    'APTUSDT', 'ARBUSDT', 'OPUSDT', 'INJUSDT', 'SUIUSDT',
)


# Default instances
DEFAULT_WINDOWS = WindowSizes()
DEFAULT_TURN_THRESHOLDS = TurnThresholds()
DEFAULT_SCORING = ScoringDefaults()
