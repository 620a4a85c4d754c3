"""
Opportunity Scoring Engine

Scores one symbol under one strategy modality:

1. Validate every timeframe's candles at the boundary
2. Return the insufficient-data score when the primary timeframe holds
   fewer than 50 candles (no partial computation)
3. Compute the shared indicator context on the primary timeframe
4. Dispatch to the modality scorer and fold its rule outcomes into a
   clamped integer score, the ordered condition list and a narrative

The primary timeframe is the first key of the per-timeframe mapping.
"""

from typing import Iterable, Optional, Union
from loguru import logger

from opportunity_engine.analysis.order_book import calculate_order_book_imbalance
from opportunity_engine.indicators.momentum import rsi
from opportunity_engine.indicators.trend import ema, last_value
from opportunity_engine.indicators.validation_utils import validate_candles
from opportunity_engine.indicators.volatility import atr
from opportunity_engine.indicators.volume import compute_volume_ratio
from opportunity_engine.shared.config.defaults import DEFAULT_SCORING, DEFAULT_WINDOWS, ScoringDefaults
from opportunity_engine.shared.config.strategy_modalities import StrategyModality, get_modality_label
from opportunity_engine.shared.models.data import MarketData, TimeframeData
from opportunity_engine.shared.models.scoring import ConditionCheck, OpportunityScore, RuleOutcome
from opportunity_engine.strategy.opportunity.scorers import SCORERS, ScoringContext

INSUFFICIENT_DATA_NARRATIVE = 'Insufficient market data for analysis'


def insufficient_data_score(symbol: str, timeframes: Iterable[str]) -> OpportunityScore:
    return OpportunityScore(
        symbol=symbol,
        score=0,
        conditions=[ConditionCheck(id='data', label='Insufficient data', met=False)],
        narrative=INSUFFICIENT_DATA_NARRATIVE,
        timeframes=list(timeframes),
    )


def build_scoring_context(primary: MarketData) -> ScoringContext:
    """Indicator readings on the primary timeframe shared by every scorer."""
    candles = list(primary.candles)
    closes = [c.close for c in candles]

    rsi_series = rsi(closes, DEFAULT_WINDOWS.rsi_period)
    atr_value = last_value(atr(candles, DEFAULT_WINDOWS.atr_period))

    return ScoringContext(
        candles=candles,
        ema20=last_value(ema(closes, DEFAULT_WINDOWS.ema_fast)),
        ema50=last_value(ema(closes, DEFAULT_WINDOWS.ema_slow)),
        rsi_series=rsi_series,
        rsi=last_value(rsi_series),
        volume_ratio=compute_volume_ratio([c.volume for c in candles], DEFAULT_WINDOWS.volume_ma_period),
        atr=atr_value if atr_value is not None else 0.0,
        ob_imbalance=calculate_order_book_imbalance(primary.order_book, DEFAULT_WINDOWS.order_book_levels),
    )


def generate_narrative(
    score: int,
    met: int,
    total: int,
    modality: StrategyModality,
    defaults: ScoringDefaults = DEFAULT_SCORING,
) -> str:
    """Tiered summary: low (<30), moderate (<60), good (<80), excellent."""
    counts = f"{met}/{total} conditions met"
    if score < defaults.narrative_low:
        return f"Low opportunity score ({score}/100). Only {counts}. Wait for better setup."
    if score < defaults.narrative_moderate:
        return f"Moderate opportunity ({score}/100). {counts}. Consider entry with reduced position size."

    label = get_modality_label(modality)
    if score < defaults.narrative_good:
        return f"Good opportunity ({score}/100). {counts}. Strong setup for {label} strategy."
    return f"Excellent opportunity ({score}/100). {counts}. High-probability {label} setup."


def fold_outcomes(outcomes: Iterable[RuleOutcome], max_score: int = DEFAULT_SCORING.max_score):
    """Sum rule points clamped to [0, max_score]; returns (score, conditions)."""
    outcomes = list(outcomes)
    total = sum(o.points for o in outcomes)
    score = max(0, min(max_score, int(total)))
    return score, [o.check for o in outcomes]


def score_opportunity(
    symbol: str,
    modality: Union[StrategyModality, str],
    market_data_by_timeframe: TimeframeData,
    defaults: ScoringDefaults = DEFAULT_SCORING,
) -> OpportunityScore:
    """
    Score a symbol for a strategy modality.

    Args:
        symbol: Trading pair symbol
        modality: Strategy modality (identifier strings are parsed)
        market_data_by_timeframe: Market data keyed by interval, primary first
        defaults: Scoring defaults

    Returns:
        OpportunityScore with one condition per evaluated rule

    Raises:
        ValueError: If `modality` is not a known strategy identifier
        DataValidationError: If any timeframe's candles are malformed
    """
    if not isinstance(modality, StrategyModality):
        modality = StrategyModality.parse(modality)

    timeframes = list(market_data_by_timeframe.keys())
    for interval, data in market_data_by_timeframe.items():
        validate_candles(data.candles, name=f"{symbol} {interval} candles")

    primary: Optional[MarketData] = (
        market_data_by_timeframe[timeframes[0]] if timeframes else None
    )
    if primary is None or len(primary.candles) < defaults.min_candles:
        count = len(primary.candles) if primary is not None else 0
        logger.debug(f"{symbol}: {count} primary candles, below {defaults.min_candles}")
        return insufficient_data_score(symbol, timeframes)

    ctx = build_scoring_context(primary)
    score, conditions = fold_outcomes(SCORERS[modality](ctx), defaults.max_score)
    met = sum(1 for c in conditions if c.met)

    logger.debug(f"{symbol}: {modality.value} score {score}/100 ({met}/{len(conditions)} conditions)")

    return OpportunityScore(
        symbol=symbol,
        score=score,
        conditions=conditions,
        narrative=generate_narrative(score, met, len(conditions), modality, defaults),
        timeframes=timeframes,
    )
