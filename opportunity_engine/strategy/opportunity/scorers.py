"""
Strategy Modality Scorers

One scorer per strategy modality. Each scorer is a pure function of the
shared `ScoringContext` and returns its rule outcomes in evaluation order;
every rule yields a condition check whether met or not, plus the points it
contributes. Point values come from `MODALITY_RULE_POINTS`.

`SCORERS` maps every `StrategyModality` to its scorer.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple
import pandas as pd

from opportunity_engine.indicators.patterns import classify_engulfing, classify_pin_bar
from opportunity_engine.indicators.volume import compute_vwap
from opportunity_engine.shared.config.strategy_modalities import MODALITY_RULE_POINTS, StrategyModality
from opportunity_engine.shared.models.data import Candle
from opportunity_engine.shared.models.scoring import ConditionCheck, RuleOutcome

# Lower tier of the volume-breakout volume rule
VOLUME_BREAKOUT_HIGH_POINTS = 25


@dataclass(frozen=True)
class ScoringContext:
    """
    Indicator readings shared by all scorers, computed once on the primary
    timeframe.

    Attributes:
        candles: Primary timeframe candles, oldest first (>= 50)
        ema20: Latest EMA20
        ema50: Latest EMA50
        rsi_series: Full RSI series (Wilder, 14)
        rsi: Latest RSI
        volume_ratio: Latest volume / average of the last 20
        atr: Latest ATR(14)
        ob_imbalance: Top-10 order book imbalance in [-1, 1] (0 without a book)
    """
    candles: List[Candle]
    ema20: float
    ema50: float
    rsi_series: pd.Series
    rsi: float
    volume_ratio: float
    atr: float
    ob_imbalance: float

    @property
    def latest(self) -> Candle:
        return self.candles[-1]

    @property
    def prev(self) -> Candle:
        return self.candles[-2]


Scorer = Callable[[ScoringContext], Tuple[RuleOutcome, ...]]


def _rule(rule_id: str, label: str, met: bool, points: int = 0, value: Optional[str] = None) -> RuleOutcome:
    return RuleOutcome(
        check=ConditionCheck(id=rule_id, label=label, met=bool(met), value=value),
        points=points if met else 0,
    )


def _prior_extremes(candles: List[Candle], lookback: int = 20) -> Tuple[float, float]:
    """Max high and min low of the `lookback - 1` candles before the latest."""
    window = candles[-lookback:-1]
    return max(c.high for c in window), min(c.low for c in window)


def _colours_reversed(prev: Candle, latest: Candle) -> bool:
    return (prev.is_bearish and latest.is_bullish) or (prev.is_bullish and latest.is_bearish)


def _has_long_wick(candle: Candle, multiple: float) -> bool:
    return candle.upper_wick > candle.body * multiple or candle.lower_wick > candle.body * multiple


# -- Core ------------------------------------------------------------------

def score_scalping(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.SCALPING]
    rsi_text = f"{ctx.rsi:.1f}"

    if ctx.volume_ratio > 1.5:
        volume = _rule('volume', 'High volume spike', True, points['volume'], f"{ctx.volume_ratio:.2f}x avg")
    else:
        # Above-average volume is reported but earns no points
        volume = _rule('volume', 'Volume above average', ctx.volume_ratio > 1.0)

    if 50 < ctx.rsi < 70:
        momentum = _rule('rsi', 'RSI bullish momentum', True, points['rsi'], rsi_text)
    elif 30 < ctx.rsi < 50:
        momentum = _rule('rsi', 'RSI bearish momentum', True, points['rsi'], rsi_text)
    else:
        momentum = _rule('rsi', 'RSI in range', False, value=rsi_text)

    if abs(ctx.ob_imbalance) > 0.2:
        book = _rule('orderbook', 'Order book imbalance', True, points['orderbook'], f"{ctx.ob_imbalance * 100:.1f}%")
    else:
        book = _rule('orderbook', 'Order book balanced', False)

    engulfing = classify_engulfing(ctx.prev, ctx.latest)
    if engulfing is not None:
        pattern = _rule('pattern', f"{engulfing.value.capitalize()} engulfing", True, points['pattern'])
    else:
        pattern = _rule('pattern', 'No engulfing pattern', False)

    liquidity = _rule('liquidity', 'Immediate execution available', True, points['liquidity'])

    return volume, momentum, book, pattern, liquidity


def score_day_trade(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.DAY_TRADE]
    latest = ctx.latest

    if ctx.ema20 > ctx.ema50 and latest.close > ctx.ema20:
        trend = _rule('trend', 'Bullish EMA alignment', True, points['trend'])
    elif ctx.ema20 < ctx.ema50 and latest.close < ctx.ema20:
        trend = _rule('trend', 'Bearish EMA alignment', True, points['trend'])
    else:
        trend = _rule('trend', 'EMA alignment unclear', False)

    # VWAP proximity approximated by EMA20
    distance = abs(latest.close - ctx.ema20) / latest.close
    distance_text = f"{distance * 100:.2f}%"
    if distance < 0.01:
        vwap = _rule('vwap', 'Near VWAP', True, points['vwap'], distance_text)
    else:
        vwap = _rule('vwap', 'Distance from VWAP', False, value=distance_text)

    if ctx.volume_ratio > 1.3:
        volume = _rule('volume', 'Volume expansion', True, points['volume'], f"{ctx.volume_ratio:.2f}x")
    else:
        volume = _rule('volume', 'Volume normal', False)

    rsi_text = f"{ctx.rsi:.1f}"
    if 40 < ctx.rsi < 60:
        momentum = _rule('rsi', 'RSI neutral zone', True, points['rsi'], rsi_text)
    else:
        momentum = _rule('rsi', 'RSI extreme', False, value=rsi_text)

    day_range = (latest.high - latest.low) / latest.close
    volatility = _rule(
        'volatility',
        'Healthy intraday range' if 0.005 < day_range < 0.03 else 'Intraday range out of band',
        0.005 < day_range < 0.03,
        points['volatility'],
        f"{day_range * 100:.2f}%",
    )

    return trend, vwap, volume, momentum, volatility


def score_swing_trade(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.SWING_TRADE]
    latest = ctx.latest

    strength = abs(ctx.ema20 - ctx.ema50) / latest.close
    if strength > 0.02:
        trend = _rule('trend', 'Strong trend structure', True, points['trend'], f"{strength * 100:.2f}%")
    else:
        trend = _rule('trend', 'Weak trend', False)

    above_both = latest.close > ctx.ema20 and latest.close > ctx.ema50
    below_both = latest.close < ctx.ema20 and latest.close < ctx.ema50
    if above_both or below_both:
        position = _rule('position', 'Clear trend position', True, points['position'])
    else:
        position = _rule('position', 'Between EMAs', False)

    if ctx.atr > 0:
        atr = _rule('atr', 'ATR defined', True, points['atr'], f"{ctx.atr:.2f}")
    else:
        atr = _rule('atr', 'ATR undefined', False)

    recent = ctx.candles[-10:]
    higher_highs = recent[-1].high > recent[0].high
    higher_lows = recent[-1].low > recent[0].low
    if higher_highs and higher_lows:
        structure = _rule('structure', 'Higher highs & lows', True, points['structure'])
    elif not higher_highs and not higher_lows:
        structure = _rule('structure', 'Lower highs & lows', True, points['structure'])
    else:
        structure = _rule('structure', 'Mixed structure', False)

    return trend, position, atr, structure


def score_position_trade(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.POSITION_TRADE]

    if ctx.ema20 > ctx.ema50:
        trend = _rule('trend', 'Long-term uptrend', True, points['trend'])
    elif ctx.ema20 < ctx.ema50:
        trend = _rule('trend', 'Long-term downtrend', True, points['trend'])
    else:
        trend = _rule('trend', 'No clear long-term trend', False)

    first_close = ctx.candles[0].close
    change = (ctx.latest.close - first_close) / first_close
    if abs(change) > 0.1:
        macro = _rule('macro', 'Significant macro movement', True, points['macro'], f"{change * 100:.1f}%")
    else:
        macro = _rule('macro', 'Limited macro movement', False)

    # Placeholders without a data source: always granted
    cycle = _rule('cycle', 'Cycle analysis', True, points['cycle'], 'Mid-cycle')
    fundamentals = _rule('fundamentals', 'Fundamental context', True, points['fundamentals'])

    return trend, macro, cycle, fundamentals


# -- Trend -----------------------------------------------------------------

def score_trend_pullback(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.TREND_PULLBACK]
    close = ctx.latest.close

    if ctx.ema20 > ctx.ema50:
        trend = _rule('trend', 'Uptrend confirmed', True, points['trend'])
        in_zone = ctx.ema50 < close < ctx.ema20
    elif ctx.ema20 < ctx.ema50:
        trend = _rule('trend', 'Downtrend confirmed', True, points['trend'])
        in_zone = ctx.ema20 < close < ctx.ema50
    else:
        trend = _rule('trend', 'No clear trend', False)
        in_zone = False

    if in_zone:
        pullback = _rule('pullback', 'Pullback to value zone', True, points['pullback'])
    else:
        pullback = _rule('pullback', 'Not in value zone', False)

    trending = ctx.ema20 != ctx.ema50
    if trending and 40 < ctx.rsi < 60:
        momentum = _rule('rsi', 'RSI pullback zone', True, points['rsi'], f"{ctx.rsi:.1f}")
    else:
        momentum = _rule('rsi', 'RSI not in pullback zone', False)

    if classify_engulfing(ctx.prev, ctx.latest) or classify_pin_bar(ctx.latest):
        reversal = _rule('reversal', 'Reversal pattern detected', True, points['reversal'])
    else:
        reversal = _rule('reversal', 'No reversal pattern', False)

    return trend, pullback, momentum, reversal


def score_trend_breakout(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.TREND_BREAKOUT]
    close = ctx.latest.close
    max_high, min_low = _prior_extremes(ctx.candles)

    if close > max_high:
        breakout = _rule('breakout', 'Upside breakout', True, points['breakout'])
    elif close < min_low:
        breakout = _rule('breakout', 'Downside breakout', True, points['breakout'])
    else:
        breakout = _rule('breakout', 'No breakout', False)

    if ctx.volume_ratio > 1.5:
        volume = _rule('volume', 'Strong volume confirmation', True, points['volume'], f"{ctx.volume_ratio:.2f}x")
    else:
        volume = _rule('volume', 'Weak volume', False)

    if abs(close - max_high) / close < 0.02:
        retest = _rule('retest', 'Near breakout level', True, points['retest'])
    else:
        retest = _rule('retest', 'Away from breakout', False)

    return breakout, volume, retest


# -- Reversal --------------------------------------------------------------

def score_reversal_divergence(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.REVERSAL_DIVERGENCE]

    if len(ctx.rsi_series) < 20:
        return (_rule('divergence', 'Insufficient data', False),)

    recent_closes = [c.close for c in ctx.candles[-10:]]
    recent_rsi = ctx.rsi_series.iloc[-10:].to_numpy()
    price_higher = recent_closes[-1] > recent_closes[0]
    rsi_higher = recent_rsi[-1] > recent_rsi[0]

    if price_higher and not rsi_higher:
        divergence = _rule('divergence', 'Bearish divergence detected', True, points['divergence'])
    elif not price_higher and rsi_higher:
        divergence = _rule('divergence', 'Bullish divergence detected', True, points['divergence'])
    else:
        divergence = _rule('divergence', 'No divergence', False)

    recent_volumes = [c.volume for c in ctx.candles[-10:]]
    if recent_volumes[-1] < recent_volumes[0]:
        volume = _rule('volume', 'Volume declining', True, points['volume'])
    else:
        volume = _rule('volume', 'Volume not declining', False)

    if classify_engulfing(ctx.prev, ctx.latest):
        reversal = _rule('reversal', 'Reversal candle confirmed', True, points['reversal'])
    else:
        reversal = _rule('reversal', 'No reversal candle', False)

    return divergence, volume, reversal


def score_reversal_liquidity(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.REVERSAL_LIQUIDITY]
    latest = ctx.latest
    body = latest.body
    total_range = latest.range

    if total_range > 0 and latest.upper_wick > body * 2 and latest.upper_wick > total_range * 0.5:
        wick = _rule('wick', 'Upper wick liquidity grab', True, points['wick'])
    elif total_range > 0 and latest.lower_wick > body * 2 and latest.lower_wick > total_range * 0.5:
        wick = _rule('wick', 'Lower wick liquidity grab', True, points['wick'])
    else:
        wick = _rule('wick', 'No significant wick', False)

    if _colours_reversed(ctx.prev, latest):
        reversal = _rule('reversal', 'Quick reversal confirmed', True, points['reversal'])
    else:
        reversal = _rule('reversal', 'No reversal', False)

    stops = _rule('stops', 'Stop capture likely', True, points['stops'])

    return wick, reversal, stops


# -- Liquidity -------------------------------------------------------------

def score_liquidity_stop_hunt(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.LIQUIDITY_STOP_HUNT]
    latest = ctx.latest
    max_high, min_low = _prior_extremes(ctx.candles)

    if latest.high > max_high:
        sweep = _rule('sweep', 'Upside liquidity swept', True, points['sweep'])
    elif latest.low < min_low:
        sweep = _rule('sweep', 'Downside liquidity swept', True, points['sweep'])
    else:
        sweep = _rule('sweep', 'No liquidity sweep', False)

    if _has_long_wick(latest, 1.5):
        absorption = _rule('absorption', 'Absorption detected', True, points['absorption'])
    else:
        absorption = _rule('absorption', 'No absorption', False)

    if classify_engulfing(ctx.prev, latest):
        entry = _rule('entry', 'Reversal entry signal', True, points['entry'])
    else:
        entry = _rule('entry', 'No reversal entry', False)

    return sweep, absorption, entry


def score_liquidity_fvg(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.LIQUIDITY_FVG]
    c1, c3 = ctx.candles[-3], ctx.candles[-1]
    bullish_gap = c1.high < c3.low
    bearish_gap = c1.low > c3.high

    if bullish_gap or bearish_gap:
        side = 'Bullish' if bullish_gap else 'Bearish'
        gap = _rule('fvg', f"{side} FVG identified", True, points['fvg'])
    else:
        gap = _rule('fvg', 'No FVG', False)

    close = c3.close
    in_gap = (bullish_gap and c1.high < close < c3.low) or (bearish_gap and c3.high < close < c1.low)
    if in_gap:
        retest = _rule('retest', 'Price in FVG zone', True, points['retest'])
    else:
        retest = _rule('retest', 'Price not in FVG', False)

    if classify_pin_bar(c3):
        rejection = _rule('rejection', 'Rejection confirmed', True, points['rejection'])
    else:
        rejection = _rule('rejection', 'No rejection', False)

    return gap, retest, rejection


# -- Volume ----------------------------------------------------------------

def score_volume_breakout(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.VOLUME_BREAKOUT]
    latest = ctx.latest
    ratio_text = f"{ctx.volume_ratio:.2f}x"

    if ctx.volume_ratio > 2.0:
        volume = _rule('volume', 'Exceptional volume', True, points['volume'], ratio_text)
    elif ctx.volume_ratio > 1.5:
        volume = _rule('volume', 'High volume', True, VOLUME_BREAKOUT_HIGH_POINTS, ratio_text)
    else:
        volume = _rule('volume', 'Normal volume', False)

    max_high, min_low = _prior_extremes(ctx.candles)
    if latest.close > max_high or latest.close < min_low:
        breakout = _rule('breakout', 'Level breakout confirmed', True, points['breakout'])
    else:
        breakout = _rule('breakout', 'No breakout', False)

    if latest.body > latest.range * 0.6:
        close = _rule('close', 'Strong close', True, points['close'])
    else:
        close = _rule('close', 'Weak close', False)

    return volume, breakout, close


def score_volume_climax(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.VOLUME_CLIMAX]
    latest = ctx.latest

    if ctx.volume_ratio > 3.0:
        volume = _rule('volume', 'Climax volume', True, points['volume'], f"{ctx.volume_ratio:.2f}x")
    else:
        volume = _rule('volume', 'Volume not extreme', False)

    if _has_long_wick(latest, 1.5):
        exhaustion = _rule('exhaustion', 'Exhaustion candle', True, points['exhaustion'])
    else:
        exhaustion = _rule('exhaustion', 'No exhaustion', False)

    if _colours_reversed(ctx.prev, latest):
        reversal = _rule('reversal', 'Immediate reversal', True, points['reversal'])
    else:
        reversal = _rule('reversal', 'No immediate reversal', False)

    return volume, exhaustion, reversal


# -- Institutional ---------------------------------------------------------

def score_institutional_breaker(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.INSTITUTIONAL_BREAKER]
    close = ctx.latest.close
    max_high, min_low = _prior_extremes(ctx.candles)

    if close > max_high:
        structure_break = _rule('break', 'Upside structure break', True, points['break'])
    elif close < min_low:
        structure_break = _rule('break', 'Downside structure break', True, points['break'])
    else:
        structure_break = _rule('break', 'No structure break', False)

    breaker = _rule('breaker', 'Breaker block marked', True, points['breaker'])

    if abs(close - max_high) / close < 0.015:
        retest = _rule('retest', 'Retest zone active', True, points['retest'])
    else:
        retest = _rule('retest', 'Awaiting retest', False)

    return structure_break, breaker, retest


def score_institutional_mitigation(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.INSTITUTIONAL_MITIGATION]
    latest = ctx.latest

    # Last opposite-coloured candle among the 9 before the latest
    prior = ctx.candles[-10:-1]
    found = any(
        (latest.is_bullish and c.is_bearish) or (latest.is_bearish and c.is_bullish)
        for c in prior
    )
    if found:
        zone = _rule('zone', 'Mitigation zone identified', True, points['zone'])
    else:
        zone = _rule('zone', 'No mitigation zone', False)

    approach = _rule('return', 'Price approaching zone', True, points['return'])

    if latest.range > latest.body * 1.5:
        absorption = _rule('absorption', 'Absorption detected', True, points['absorption'])
    else:
        absorption = _rule('absorption', 'No absorption', False)

    return zone, approach, absorption


def score_institutional_vwap(ctx: ScoringContext) -> Tuple[RuleOutcome, ...]:
    points = MODALITY_RULE_POINTS[StrategyModality.INSTITUTIONAL_VWAP]
    latest = ctx.latest

    vwap = compute_vwap(ctx.candles, window=20)
    distance = abs(latest.close - vwap) / latest.close
    if distance > 0.02:
        reach = _rule('distance', 'Far from VWAP', True, points['distance'], f"{distance * 100:.2f}%")
    else:
        reach = _rule('distance', 'Near VWAP', False)

    recent = ctx.candles[-10:]
    avg_volume = sum(c.volume for c in recent) / len(recent)
    if latest.volume < avg_volume * 0.8:
        volume = _rule('volume', 'Volume reducing', True, points['volume'])
    else:
        volume = _rule('volume', 'Volume normal', False)

    if classify_pin_bar(latest):
        exhaustion = _rule('exhaustion', 'Exhaustion pattern', True, points['exhaustion'])
    else:
        exhaustion = _rule('exhaustion', 'No exhaustion', False)

    return reach, volume, exhaustion


SCORERS: Dict[StrategyModality, Scorer] = {
    StrategyModality.SCALPING: score_scalping,
    StrategyModality.DAY_TRADE: score_day_trade,
    StrategyModality.SWING_TRADE: score_swing_trade,
    StrategyModality.POSITION_TRADE: score_position_trade,
    StrategyModality.TREND_PULLBACK: score_trend_pullback,
    StrategyModality.TREND_BREAKOUT: score_trend_breakout,
    StrategyModality.REVERSAL_DIVERGENCE: score_reversal_divergence,
    StrategyModality.REVERSAL_LIQUIDITY: score_reversal_liquidity,
    StrategyModality.LIQUIDITY_STOP_HUNT: score_liquidity_stop_hunt,
    StrategyModality.LIQUIDITY_FVG: score_liquidity_fvg,
    StrategyModality.VOLUME_BREAKOUT: score_volume_breakout,
    StrategyModality.VOLUME_CLIMAX: score_volume_climax,
    StrategyModality.INSTITUTIONAL_BREAKER: score_institutional_breaker,
    StrategyModality.INSTITUTIONAL_MITIGATION: score_institutional_mitigation,
    StrategyModality.INSTITUTIONAL_VWAP: score_institutional_vwap,
}
