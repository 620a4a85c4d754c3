"""
Institutional Calibration Engine

Six independently computed criteria, each a score in [0, 1] with a status
string, combined with fixed weights into a 0-100 composite:

1. Trend (25%): downtrend strength discounted by volatility
2. Support (20%): order block / liquidity zones from the institutional setup
3. Volume & transactions (20%): relative volume and absolute volume
4. Technical indicators (15%): rising RSI and growing open interest
5. Short positions (10%): open interest growth into a decline
6. Wick rejection (10%): pattern formation from early confluence

Trend, short-position and wick-rejection scores are gated: they are zero
unless their precondition holds, then scale.
"""

import math
from typing import Tuple
from loguru import logger

from opportunity_engine.shared.config.institutional import (
    CALIBRATION_LEVEL_THRESHOLDS,
    CALIBRATION_WEIGHTS,
)
from opportunity_engine.shared.models.institutional import (
    AssetSnapshot,
    CalibrationLevel,
    InstitutionalCalibration,
    RsiTrend,
)

CriterionResult = Tuple[float, str]

RECOMMENDATIONS = {
    CalibrationLevel.EXCELLENT: 'Excellent early institutional setup - High probability of reversal',
    CalibrationLevel.GOOD: 'Good institutional conditions - Entry recommended with risk management',
    CalibrationLevel.MODERATE: 'Moderate conditions - Wait for additional confirmation',
    CalibrationLevel.WEAK: 'Wait for better institutional conditions',
}

LEVEL_LABELS = {
    CalibrationLevel.EXCELLENT: 'Excellent',
    CalibrationLevel.GOOD: 'Good',
    CalibrationLevel.MODERATE: 'Moderate',
    CalibrationLevel.WEAK: 'Weak',
}


def _clamp(score: float) -> float:
    return min(1.0, max(0.0, score))


def calculate_trend_score(asset: AssetSnapshot) -> CriterionResult:
    change = asset.percentage_change
    if change >= 0:
        return 0.0, 'No downtrend'

    strength = min(abs(change) / 10, 1.0)
    volatility_factor = min(asset.volatility, 1.0)
    score = _clamp(strength * (1 - volatility_factor * 0.3))

    if score >= 0.7:
        status = 'Consistent trend - Strong decline across multiple timeframes'
    elif score >= 0.5:
        status = 'Moderate decline with partial alignment'
    elif score >= 0.3:
        status = 'Initial decline detected'
    else:
        status = 'Weak decline'
    return score, status


def calculate_support_score(asset: AssetSnapshot) -> CriterionResult:
    setup = asset.institutional_setup
    has_ob = setup.has_ob if setup is not None else False
    has_liquidity = setup.has_liquidity if setup is not None else False

    volume_strength = min(asset.volume_market_cap_ratio * 2, 1.0)
    price_stability = 1 - min(abs(asset.percentage_change) / 20, 1.0)

    if has_ob and has_liquidity:
        return _clamp(0.8 + volume_strength * 0.2), 'Near order blocks and strong liquidity zones'
    if has_ob:
        return _clamp(0.6 + price_stability * 0.2), 'Order block detected - Institutional support identified'
    if has_liquidity:
        return _clamp(0.5 + volume_strength * 0.2), 'Liquidity zone detected'
    if price_stability > 0.7:
        return 0.3, 'Possible support zone forming'
    return 0.0, 'No institutional support detected'


def calculate_volume_transaction_score(asset: AssetSnapshot) -> CriterionResult:
    volume_strength = min(asset.volume_market_cap_ratio * 3, 1.0)
    volume_momentum = min(asset.volume / 1e8, 1.0)
    score = _clamp(volume_strength * 0.6 + volume_momentum * 0.4)

    if score >= 0.7:
        status = 'Rising volume and transactions - Institutional activity confirmed'
    elif score >= 0.5:
        status = 'Positive correlation detected - Activity momentum'
    elif score >= 0.3:
        status = 'Moderate activity detected'
    else:
        status = 'Low volume and transactions'
    return score, status


def calculate_technical_indicator_score(asset: AssetSnapshot) -> CriterionResult:
    rsi = asset.rsi
    oi = asset.open_interest
    if rsi is None or oi is None:
        return 0.0, 'Technical indicators unavailable'

    rsi_rising = rsi.trend == RsiTrend.RISING and 40 < rsi.value < 70
    rsi_score = min((rsi.value - 40) / 30, 1.0) if rsi_rising else 0.0

    oi_increasing = oi.is_increasing and oi.change_percent > 1
    oi_score = min(oi.change_percent / 10, 1.0) if oi_increasing else 0.0

    score = _clamp(rsi_score * 0.5 + oi_score * 0.5)

    if score >= 0.7:
        status = 'Rising RSI + growing OI - Liquidity absorption confirmed'
    elif score >= 0.5:
        status = 'Partial convergence detected'
    elif rsi_rising:
        status = 'Rising RSI detected'
    elif oi_increasing:
        status = 'Growing OI detected'
    else:
        status = 'No indicator convergence'
    return score, status


def calculate_short_position_score(asset: AssetSnapshot) -> CriterionResult:
    oi = asset.open_interest
    if oi is None:
        return 0.0, 'Short position data unavailable'

    price_decline = asset.percentage_change < 0
    oi_growth = oi.is_increasing and oi.change_percent > 2
    if not price_decline or not oi_growth:
        return 0.0, 'No short asymmetry detected'

    asymmetry = min(abs(asset.percentage_change) / 10, 1.0)
    oi_strength = min(oi.change_percent / 15, 1.0)
    score = _clamp(asymmetry * 0.6 + oi_strength * 0.4)

    if score >= 0.7:
        status = 'Growing short positions - Strong institutional asymmetry, squeeze opportunity'
    elif score >= 0.5:
        status = 'Moderate asymmetry detected'
    elif score >= 0.3:
        status = 'Initial short growth'
    else:
        status = 'Short positions growing'
    return score, status


def calculate_wick_rejection_score(asset: AssetSnapshot) -> CriterionResult:
    early = asset.early_confluence
    if early is None:
        return 0.0, 'Candle pattern data unavailable'
    if not early.pattern_formation:
        return 0.0, 'No rejection wicks detected'

    score = 0.4
    if early.volume_spike:
        score += 0.3
    if early.institutional_volume:
        score += 0.3
    score = _clamp(score)

    if score >= 0.7:
        status = 'Long lower wicks - Decline rejected, institutional absorption'
    elif score >= 0.5:
        status = 'Moderate rejection with volume'
    else:
        status = 'Wick formation detected'
    return score, status


def classify_calibration_level(composite_score: float) -> CalibrationLevel:
    if composite_score >= CALIBRATION_LEVEL_THRESHOLDS['excellent']:
        return CalibrationLevel.EXCELLENT
    if composite_score >= CALIBRATION_LEVEL_THRESHOLDS['good']:
        return CalibrationLevel.GOOD
    if composite_score >= CALIBRATION_LEVEL_THRESHOLDS['moderate']:
        return CalibrationLevel.MODERATE
    return CalibrationLevel.WEAK


def composite_from_scores(scores: dict) -> float:
    """100 * weighted sum of criterion scores keyed like CALIBRATION_WEIGHTS."""
    total = math.fsum(CALIBRATION_WEIGHTS[name] * scores[name] for name in CALIBRATION_WEIGHTS)
    return min(100.0, max(0.0, 100.0 * total))


def calculate_institutional_calibration(asset: AssetSnapshot) -> InstitutionalCalibration:
    """
    Weighted six-criterion calibration for an asset.

    Support reads `asset.institutional_setup` and wick rejection reads
    `asset.early_confluence`; either may be absent and then contributes its
    fallback score.
    """
    trend = calculate_trend_score(asset)
    support = calculate_support_score(asset)
    volume = calculate_volume_transaction_score(asset)
    technical = calculate_technical_indicator_score(asset)
    short = calculate_short_position_score(asset)
    wick = calculate_wick_rejection_score(asset)

    composite = composite_from_scores({
        'trend': trend[0],
        'support': support[0],
        'volume_transaction': volume[0],
        'technical_indicator': technical[0],
        'short_position': short[0],
        'wick_rejection': wick[0],
    })
    level = classify_calibration_level(composite)

    logger.debug(f"{asset.symbol}: calibration {composite:.1f}/100 ({level.value})")

    return InstitutionalCalibration(
        trend_score=trend[0],
        support_score=support[0],
        volume_transaction_score=volume[0],
        technical_indicator_score=technical[0],
        short_position_score=short[0],
        wick_rejection_score=wick[0],
        composite_score=composite,
        trend_status=trend[1],
        support_status=support[1],
        volume_transaction_status=volume[1],
        technical_indicator_status=technical[1],
        short_position_status=short[1],
        wick_rejection_status=wick[1],
        calibration_level=level,
        recommendation=RECOMMENDATIONS[level],
    )


def get_calibration_level_label(level: CalibrationLevel) -> str:
    return LEVEL_LABELS[CalibrationLevel(level)]
