"""
Institutional analysis models.

An `AssetSnapshot` is the single-asset market summary (24h change, volume,
volatility, optional RSI/open-interest readings) that the institutional
setup detector and the calibration engine evaluate. RSI and open interest
are optional: not every venue publishes them, and every consumer handles
the absent branch.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Optional

from opportunity_engine.shared.models.confluence import EarlyConfluence


class RsiTrend(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    NEUTRAL = "neutral"


class SetupStatus(str, Enum):
    NONE = "none"
    PARTIAL = "partial"
    COMPLETE = "complete"


class ConfluenceLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CalibrationLevel(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    GOOD = "good"
    EXCELLENT = "excellent"


@dataclass(frozen=True)
class RSIData:
    """Latest RSI reading and its short-term direction."""
    value: float
    trend: RsiTrend = RsiTrend.NEUTRAL
    is_eligible: bool = True


@dataclass(frozen=True)
class OpenInterestData:
    """Open-interest reading versus the previous sample."""
    current: float
    previous: float
    change_percent: float
    is_increasing: bool


@dataclass(frozen=True)
class InstitutionalSetup:
    """
    Eight-criterion institutional setup checklist.

    Attributes:
        has_liquidity .. has_institutional_target: Independent criterion flags
        setup_progress: Count of true flags (0-8)
        setup_status: complete iff 8, partial iff >= 1, else none
        confluence_level: high / medium / low
        setup_narrative: Generated summary of the satisfied criteria
    """
    has_liquidity: bool
    has_manipulation: bool
    has_choch: bool
    has_ob: bool
    has_fvg: bool
    has_mitigation: bool
    has_displacement: bool
    has_institutional_target: bool
    setup_progress: int
    setup_status: SetupStatus
    confluence_level: ConfluenceLevel
    setup_narrative: str = ""

    def criteria(self) -> Dict[str, bool]:
        """Criterion flags in evaluation order."""
        return {
            'liquidity': self.has_liquidity,
            'manipulation': self.has_manipulation,
            'choch': self.has_choch,
            'ob': self.has_ob,
            'fvg': self.has_fvg,
            'mitigation': self.has_mitigation,
            'displacement': self.has_displacement,
            'institutionalTarget': self.has_institutional_target,
        }


@dataclass(frozen=True)
class InstitutionalCalibration:
    """
    Six-criterion weighted calibration.

    Criterion scores are each in [0, 1]; `composite_score` is
    100 * sum(weight * score) with the fixed calibration weights.
    """
    trend_score: float
    support_score: float
    volume_transaction_score: float
    technical_indicator_score: float
    short_position_score: float
    wick_rejection_score: float
    composite_score: float
    trend_status: str
    support_status: str
    volume_transaction_status: str
    technical_indicator_status: str
    short_position_status: str
    wick_rejection_status: str
    calibration_level: CalibrationLevel
    recommendation: str

    def criterion_scores(self) -> Dict[str, float]:
        return {
            'trend': self.trend_score,
            'support': self.support_score,
            'volume_transaction': self.volume_transaction_score,
            'technical_indicator': self.technical_indicator_score,
            'short_position': self.short_position_score,
            'wick_rejection': self.wick_rejection_score,
        }


@dataclass(frozen=True)
class AssetSnapshot:
    """
    Single-asset market snapshot.

    Attributes:
        symbol: Trading pair symbol (e.g., 'BTCUSDT')
        price: Last price
        volume: 24h quote volume (USD)
        percentage_change: 24h price change in percent
        market_cap: Market capitalisation (USD)
        volume_market_cap_ratio: volume / market_cap
        momentum: Normalised momentum reading (0-1)
        volatility: Normalised volatility reading (0-1+)
        confluence_score: Cross-signal confluence (0-1)
        has_confluence: Whether the confluence screen passed
        rsi: Optional RSI reading
        open_interest: Optional open-interest reading
        institutional_setup: Filled by the setup detector
        early_confluence: Filled by the early confluence detector
        institutional_calibration: Filled by the calibration engine
    """
    symbol: str
    price: float
    volume: float
    percentage_change: float
    market_cap: float
    volume_market_cap_ratio: float
    momentum: float
    volatility: float
    confluence_score: float
    has_confluence: bool
    rsi: Optional[RSIData] = None
    open_interest: Optional[OpenInterestData] = None
    institutional_setup: Optional[InstitutionalSetup] = None
    early_confluence: Optional[EarlyConfluence] = None
    institutional_calibration: Optional[InstitutionalCalibration] = None

    def to_dict(self) -> dict:
        return asdict(self)
