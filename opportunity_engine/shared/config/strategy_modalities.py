"""Strategy modality catalogue.

Defines the 15 strategy modalities the opportunity scorer understands,
grouped by category. Each modality supplies:
- id: canonical identifier (the enum value)
- label: human readable name used in narratives
- category: Core / Trend / Reversal / Liquidity / Volume / Institutional
- description: short summary

`MODALITY_RULE_POINTS` lists, per modality, the maximum points each rule
can contribute. Every table sums to at most 100 so a scorer can never
exceed the score ceiling before clamping.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List


class StrategyModality(str, Enum):
    """Closed set of strategy modality identifiers."""
    SCALPING = "scalping"
    DAY_TRADE = "dayTrade"
    SWING_TRADE = "swingTrade"
    POSITION_TRADE = "positionTrade"
    TREND_PULLBACK = "trendPullback"
    TREND_BREAKOUT = "trendBreakout"
    REVERSAL_DIVERGENCE = "reversalDivergence"
    REVERSAL_LIQUIDITY = "reversalLiquidity"
    LIQUIDITY_STOP_HUNT = "liquidityStopHunt"
    LIQUIDITY_FVG = "liquidityFVG"
    VOLUME_BREAKOUT = "volumeBreakout"
    VOLUME_CLIMAX = "volumeClimax"
    INSTITUTIONAL_BREAKER = "institutionalBreaker"
    INSTITUTIONAL_MITIGATION = "institutionalMitigation"
    INSTITUTIONAL_VWAP = "institutionalVWAP"

    @classmethod
    def parse(cls, value: str) -> 'StrategyModality':
        """
        Resolve an identifier (enum value or member name, case-insensitive).

        Raises:
            ValueError: If the identifier is not a known modality
        """
        key = value.strip().lower()
        for member in cls:
            if member.value.lower() == key or member.name.lower() == key:
                return member
        raise ValueError(f"Unknown strategy modality: {value}")


@dataclass(frozen=True)
class StrategyModalityInfo:
    id: StrategyModality
    label: str
    category: str
    description: str


STRATEGY_MODALITIES: Dict[StrategyModality, StrategyModalityInfo] = {
    info.id: info
    for info in (
        # Core
        StrategyModalityInfo(StrategyModality.SCALPING, "Scalping", "Core",
                             "High frequency, seconds to minutes"),
        StrategyModalityInfo(StrategyModality.DAY_TRADE, "Day Trade", "Core",
                             "Intraday movements, same-day operations"),
        StrategyModalityInfo(StrategyModality.SWING_TRADE, "Swing Trade", "Core",
                             "Days to weeks, broader movements"),
        StrategyModalityInfo(StrategyModality.POSITION_TRADE, "Position Trade", "Core",
                             "Weeks to months, macro cycles"),
        # Trend
        StrategyModalityInfo(StrategyModality.TREND_PULLBACK, "Pullback in Trend", "Trend",
                             "Correction to value zone in trend"),
        StrategyModalityInfo(StrategyModality.TREND_BREAKOUT, "Breakout Retest", "Trend",
                             "Retest after breakout confirmation"),
        # Reversal
        StrategyModalityInfo(StrategyModality.REVERSAL_DIVERGENCE, "Divergence (RSI/OBV)", "Reversal",
                             "Price vs indicator divergence"),
        StrategyModalityInfo(StrategyModality.REVERSAL_LIQUIDITY, "Liquidity Grab", "Reversal",
                             "Stop hunt + quick reversal"),
        # Liquidity
        StrategyModalityInfo(StrategyModality.LIQUIDITY_STOP_HUNT, "Stop Hunt + Reversal", "Liquidity",
                             "Liquidity pool sweep + reversal"),
        StrategyModalityInfo(StrategyModality.LIQUIDITY_FVG, "FVG Entry", "Liquidity",
                             "Fair Value Gap retest entry"),
        # Volume
        StrategyModalityInfo(StrategyModality.VOLUME_BREAKOUT, "Breakout with Volume", "Volume",
                             "Volume-confirmed breakout"),
        StrategyModalityInfo(StrategyModality.VOLUME_CLIMAX, "Volume Climax", "Volume",
                             "Capitulation / exhaustion volume"),
        # Institutional
        StrategyModalityInfo(StrategyModality.INSTITUTIONAL_BREAKER, "Breaker Block", "Institutional",
                             "Structure break + retest"),
        StrategyModalityInfo(StrategyModality.INSTITUTIONAL_MITIGATION, "Mitigation Block", "Institutional",
                             "Order mitigation zone"),
        StrategyModalityInfo(StrategyModality.INSTITUTIONAL_VWAP, "VWAP Reversion", "Institutional",
                             "Mean reversion to VWAP"),
    )
}


# Maximum points per rule id. Tiered rules list their top tier here; lower
# tiers live next to the scorer.
MODALITY_RULE_POINTS: Dict[StrategyModality, Dict[str, int]] = {
    StrategyModality.SCALPING: {
        'volume': 25, 'rsi': 20, 'orderbook': 20, 'pattern': 15, 'liquidity': 10,
    },
    StrategyModality.DAY_TRADE: {
        'trend': 25, 'vwap': 20, 'volume': 20, 'rsi': 15, 'volatility': 10,
    },
    StrategyModality.SWING_TRADE: {
        'trend': 30, 'position': 25, 'atr': 15, 'structure': 20,
    },
    StrategyModality.POSITION_TRADE: {
        'trend': 35, 'macro': 25, 'cycle': 20, 'fundamentals': 10,
    },
    StrategyModality.TREND_PULLBACK: {
        'trend': 25, 'pullback': 30, 'rsi': 20, 'reversal': 15,
    },
    StrategyModality.TREND_BREAKOUT: {
        'breakout': 30, 'volume': 30, 'retest': 20,
    },
    StrategyModality.REVERSAL_DIVERGENCE: {
        'divergence': 40, 'volume': 20, 'reversal': 20,
    },
    StrategyModality.REVERSAL_LIQUIDITY: {
        'wick': 35, 'reversal': 30, 'stops': 15,
    },
    StrategyModality.LIQUIDITY_STOP_HUNT: {
        'sweep': 30, 'absorption': 25, 'entry': 25,
    },
    StrategyModality.LIQUIDITY_FVG: {
        'fvg': 35, 'retest': 30, 'rejection': 15,
    },
    StrategyModality.VOLUME_BREAKOUT: {
        'volume': 40, 'breakout': 30, 'close': 15,
    },
    StrategyModality.VOLUME_CLIMAX: {
        'volume': 40, 'exhaustion': 30, 'reversal': 20,
    },
    StrategyModality.INSTITUTIONAL_BREAKER: {
        'break': 35, 'breaker': 20, 'retest': 25,
    },
    StrategyModality.INSTITUTIONAL_MITIGATION: {
        'zone': 35, 'return': 25, 'absorption': 20,
    },
    StrategyModality.INSTITUTIONAL_VWAP: {
        'distance': 30, 'volume': 25, 'exhaustion': 25,
    },
}


def get_modality_info(modality: StrategyModality) -> StrategyModalityInfo:
    """Lookup catalogue entry for a modality (accepts the string id too)."""
    if not isinstance(modality, StrategyModality):
        modality = StrategyModality.parse(modality)
    return STRATEGY_MODALITIES[modality]


def get_modality_label(modality: StrategyModality) -> str:
    return get_modality_info(modality).label


def list_modalities() -> List[Dict[str, object]]:
    """Return serializable summaries for all modalities."""
    return [
        {
            "id": info.id.value,
            "label": info.label,
            "category": info.category,
            "description": info.description,
            "max_points": sum(MODALITY_RULE_POINTS[info.id].values()),
        }
        for info in STRATEGY_MODALITIES.values()
    ]
