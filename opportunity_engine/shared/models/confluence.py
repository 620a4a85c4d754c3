"""
Early confluence model.

Fuses 1-minute and 5-minute signals into a 0-1 confluence score. The
timing/probability projection is an ad hoc heuristic carried for parity
with the desk tooling; it is not statistically calibrated.
"""

from dataclasses import dataclass, asdict
from enum import Enum


class SignalStrength(str, Enum):
    NONE = "none"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


@dataclass(frozen=True)
class EarlyConfluence:
    """
    Short-interval confluence reading.

    Attributes:
        short_interval_signal: Both 1m and 5m first-to-last change > 0.5%
        rsi_momentum: RSI in [40, 70] on both intervals, 1m >= 5m - 5
        volume_spike: Last-3 average 1m volume > 1.5x preceding average
        pattern_formation: Engulfing or wick-dominant 1m bar in the window
        institutional_volume: 24h volume > $50M and volume spike
        confluence_score: Weighted sum of the five flags (0-1)
        signal_strength: none / weak / moderate / strong
        projected_reversal: Score >= 0.6 when a projection was computed
        confluence_label: Display tier of the score
        timing_estimate: Heuristic minutes until reversal (0 if not projected)
        probability: Heuristic probability (score * 0.8, 0 if not projected)
        is_early_confirmed: Score >= 0.6 and institutional volume
    """
    short_interval_signal: bool = False
    rsi_momentum: bool = False
    volume_spike: bool = False
    pattern_formation: bool = False
    institutional_volume: bool = False
    confluence_score: float = 0.0
    signal_strength: SignalStrength = SignalStrength.NONE
    projected_reversal: bool = False
    confluence_label: str = "none"
    timing_estimate: float = 0.0
    probability: float = 0.0
    is_early_confirmed: bool = False

    @classmethod
    def empty(cls) -> 'EarlyConfluence':
        """All-false / zero sentinel for insufficient data."""
        return cls()

    def to_dict(self) -> dict:
        data = asdict(self)
        data['signal_strength'] = self.signal_strength.value
        return data
