"""
Institutional Setup Detection

Evaluates eight independent criteria over a single asset snapshot:
- Liquidity: volume high relative to market cap
- Manipulation: sharp move with high relative volume and volatility
- CHOCH: change of character confirmed by rising RSI and open interest
- OB: order block proxy from volume spike, move size and momentum
- FVG: fair value gap proxy from volatility, move size and confluence
- Mitigation: RSI mid-band with growing open interest and momentum
- Displacement: large move beyond normal volatility on heavy volume
- Institutional target: key level proxy from confluence and momentum

Criteria never depend on each other. RSI and open interest are optional;
a criterion that needs an absent reading is simply not met.
"""

from dataclasses import replace
from typing import Dict, List
from loguru import logger

from opportunity_engine.shared.config.institutional import DEFAULT_SETUP_THRESHOLDS, SetupThresholds
from opportunity_engine.shared.models.institutional import (
    AssetSnapshot,
    ConfluenceLevel,
    InstitutionalSetup,
    RsiTrend,
    SetupStatus,
)

TOTAL_CRITERIA = 8

CRITERION_LABELS: Dict[str, str] = {
    'liquidity': 'Liquidity',
    'manipulation': 'Manipulation',
    'choch': 'CHOCH',
    'ob': 'OB',
    'fvg': 'FVG',
    'mitigation': 'Mitigation',
    'displacement': 'Displacement',
    'institutionalTarget': 'Institutional Target',
}

CRITERION_ABBREVIATIONS: Dict[str, str] = {
    'liquidity': 'Liq',
    'manipulation': 'Man',
    'choch': 'CHOCH',
    'ob': 'OB',
    'fvg': 'FVG',
    'mitigation': 'Mit',
    'displacement': 'Disp',
    'institutionalTarget': 'Target',
}

CRITERION_DESCRIPTIONS: Dict[str, str] = {
    'liquidity': 'Liquidity: high-liquidity zones identified through elevated volume relative to market cap.',
    'manipulation': 'Manipulation: abrupt price moves on high volume suggesting institutional stop sweeps.',
    'choch': 'CHOCH: change of character with a trend reversal confirmed by RSI and open interest.',
    'ob': 'OB (Order Block): institutional order blocks identified through volume spikes and price rejection.',
    'fvg': 'FVG (Fair Value Gap): market imbalances with price gaps and volume confirmation.',
    'mitigation': 'Mitigation: institutional mitigation patterns with retracement and volume confirmation.',
    'displacement': 'Displacement: significant institutional price movement beyond normal volatility with confirmed volume.',
    'institutionalTarget': 'Institutional Target: key levels identified through support/resistance and repeated institutional activity.',
}


def has_liquidity(asset: AssetSnapshot, t: SetupThresholds = DEFAULT_SETUP_THRESHOLDS) -> bool:
    return asset.volume_market_cap_ratio > t.liquidity_vmr and asset.volume > t.liquidity_volume


def has_manipulation(asset: AssetSnapshot, t: SetupThresholds = DEFAULT_SETUP_THRESHOLDS) -> bool:
    return (
        abs(asset.percentage_change) > t.manipulation_abs_change
        and asset.volume_market_cap_ratio > t.manipulation_vmr
        and asset.volatility > t.manipulation_volatility
    )


def has_choch(asset: AssetSnapshot, t: SetupThresholds = DEFAULT_SETUP_THRESHOLDS) -> bool:
    if asset.rsi is None or asset.open_interest is None:
        return False
    return (
        asset.rsi.trend == RsiTrend.RISING
        and asset.rsi.value > t.choch_rsi
        and asset.open_interest.is_increasing
        and asset.percentage_change > t.choch_change
    )


def has_order_block(asset: AssetSnapshot, t: SetupThresholds = DEFAULT_SETUP_THRESHOLDS) -> bool:
    return (
        asset.volume_market_cap_ratio > t.ob_vmr
        and asset.volume > t.ob_volume
        and abs(asset.percentage_change) > t.ob_abs_change
        and asset.momentum > t.ob_momentum
    )


def has_fair_value_gap(asset: AssetSnapshot, t: SetupThresholds = DEFAULT_SETUP_THRESHOLDS) -> bool:
    return (
        asset.volatility > t.fvg_volatility
        and abs(asset.percentage_change) > t.fvg_abs_change
        and asset.volume_market_cap_ratio > t.fvg_vmr
        and asset.has_confluence
    )


def has_mitigation(asset: AssetSnapshot, t: SetupThresholds = DEFAULT_SETUP_THRESHOLDS) -> bool:
    if asset.rsi is None or asset.open_interest is None:
        return False
    return (
        t.mitigation_rsi_low < asset.rsi.value < t.mitigation_rsi_high
        and asset.open_interest.change_percent > t.mitigation_oi_change
        and asset.momentum > t.mitigation_momentum
        and asset.confluence_score > t.mitigation_confluence
    )


def has_displacement(asset: AssetSnapshot, t: SetupThresholds = DEFAULT_SETUP_THRESHOLDS) -> bool:
    return (
        abs(asset.percentage_change) > t.displacement_abs_change
        and asset.momentum > t.displacement_momentum
        and asset.volume_market_cap_ratio > t.displacement_vmr
        and asset.volume > t.displacement_volume
    )


def has_institutional_target(asset: AssetSnapshot, t: SetupThresholds = DEFAULT_SETUP_THRESHOLDS) -> bool:
    rsi_value = asset.rsi.value if asset.rsi is not None else 0.0
    return (
        asset.volatility > t.target_volatility
        and asset.confluence_score > t.target_confluence
        and asset.has_confluence
        and asset.momentum > t.target_momentum
        and rsi_value > t.target_rsi
    )


def detect_institutional_setup(
    asset: AssetSnapshot,
    thresholds: SetupThresholds = DEFAULT_SETUP_THRESHOLDS,
) -> InstitutionalSetup:
    """
    Evaluate the eight institutional criteria for an asset.

    Args:
        asset: Asset snapshot
        thresholds: Criterion cutoffs

    Returns:
        InstitutionalSetup with flags, progress, status, confluence level
        and narrative
    """
    flags = {
        'has_liquidity': has_liquidity(asset, thresholds),
        'has_manipulation': has_manipulation(asset, thresholds),
        'has_choch': has_choch(asset, thresholds),
        'has_ob': has_order_block(asset, thresholds),
        'has_fvg': has_fair_value_gap(asset, thresholds),
        'has_mitigation': has_mitigation(asset, thresholds),
        'has_displacement': has_displacement(asset, thresholds),
        'has_institutional_target': has_institutional_target(asset, thresholds),
    }
    progress = sum(flags.values())

    if progress == TOTAL_CRITERIA:
        status = SetupStatus.COMPLETE
    elif progress >= 1:
        status = SetupStatus.PARTIAL
    else:
        status = SetupStatus.NONE

    if asset.confluence_score > thresholds.high_confluence and progress >= thresholds.high_progress:
        level = ConfluenceLevel.HIGH
    elif asset.confluence_score > thresholds.medium_confluence or progress >= thresholds.medium_progress:
        level = ConfluenceLevel.MEDIUM
    else:
        level = ConfluenceLevel.LOW

    setup = InstitutionalSetup(
        setup_progress=progress,
        setup_status=status,
        confluence_level=level,
        **flags,
    )

    logger.debug(f"{asset.symbol}: institutional setup {progress}/{TOTAL_CRITERIA} ({status.value}, {level.value})")

    return replace(setup, setup_narrative=generate_setup_narrative(setup))


def _met_criteria(setup: InstitutionalSetup) -> List[str]:
    return [name for name, met in setup.criteria().items() if met]


def generate_setup_narrative(setup: InstitutionalSetup) -> str:
    """Satisfied criteria in evaluation order followed by a progress-tier sentence."""
    met = _met_criteria(setup)
    if not met:
        return 'No institutional criteria detected. Waiting for favourable market conditions.'

    narrative = "Institutional Setup: " + " → ".join(f"{CRITERION_LABELS[name]} ✅" for name in met) + " | "
    if setup.setup_status == SetupStatus.COMPLETE:
        narrative += (
            'Complete setup validated. All eight criteria met. Institutional configuration '
            'confirmed with high probability of a significant move.'
        )
    elif setup.setup_progress >= 6:
        narrative += (
            'Setup nearly complete. Most criteria met. Wait for the remaining criteria '
            'to confirm for full validation.'
        )
    elif setup.setup_progress >= 4:
        narrative += (
            'Partial configuration detected. Half of the criteria confirmed. Monitor for '
            'additional confirmation.'
        )
    else:
        narrative += (
            'Institutional setup in early analysis. Basic criteria detected. Wait for '
            'additional confirmation.'
        )
    return narrative


def get_setup_progress_description(setup: InstitutionalSetup) -> str:
    met = _met_criteria(setup)
    if not met:
        return 'No criteria detected'
    return " ✓ ".join(CRITERION_ABBREVIATIONS[name] for name in met) + f" ({setup.setup_progress}/{TOTAL_CRITERIA})"


def get_confluence_status_description(setup: InstitutionalSetup) -> str:
    descriptions = {
        ConfluenceLevel.HIGH: 'High Confluence - Strong institutional setup',
        ConfluenceLevel.MEDIUM: 'Medium Confluence - Moderate institutional setup',
        ConfluenceLevel.LOW: 'Low Confluence - Wait for additional confirmation',
    }
    return descriptions.get(setup.confluence_level, 'No confluence')


def get_criterion_description(criterion: str) -> str:
    """Long description of a criterion key ('' for unknown keys)."""
    return CRITERION_DESCRIPTIONS.get(criterion, '')
