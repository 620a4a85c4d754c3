"""
Institutional setup, calibration and early confluence constants.

Thresholds are compared with the exact operators used by the detectors
(strict `>` unless noted). Weight tables must each sum to 1.0; the unit
tests check this.
"""
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class SetupThresholds:
    """Cutoffs for the eight institutional setup criteria."""
    # Liquidity
    liquidity_vmr: float = 0.15
    liquidity_volume: float = 10e6

    # Manipulation
    manipulation_abs_change: float = 3.0
    manipulation_vmr: float = 0.2
    manipulation_volatility: float = 0.5

    # Change of character
    choch_rsi: float = 45.0
    choch_change: float = 2.0

    # Order block
    ob_vmr: float = 0.25
    ob_volume: float = 15e6
    ob_abs_change: float = 2.0
    ob_momentum: float = 0.6

    # Fair value gap
    fvg_volatility: float = 0.6
    fvg_abs_change: float = 4.0
    fvg_vmr: float = 0.18

    # Mitigation (RSI strictly inside the band)
    mitigation_rsi_low: float = 40.0
    mitigation_rsi_high: float = 70.0
    mitigation_oi_change: float = 1.0
    mitigation_momentum: float = 0.5
    mitigation_confluence: float = 0.5

    # Displacement
    displacement_abs_change: float = 5.0
    displacement_momentum: float = 0.7
    displacement_vmr: float = 0.3
    displacement_volume: float = 20e6

    # Institutional target
    target_volatility: float = 0.5
    target_confluence: float = 0.6
    target_momentum: float = 0.6
    target_rsi: float = 50.0

    # Confluence level
    high_confluence: float = 0.7
    high_progress: int = 6
    medium_confluence: float = 0.5
    medium_progress: int = 4


CALIBRATION_WEIGHTS: Dict[str, float] = {
    'trend': 0.25,
    'support': 0.20,
    'volume_transaction': 0.20,
    'technical_indicator': 0.15,
    'short_position': 0.10,
    'wick_rejection': 0.10,
}

# Composite score cutoffs (inclusive lower bounds)
CALIBRATION_LEVEL_THRESHOLDS: Dict[str, float] = {
    'excellent': 70.0,
    'good': 55.0,
    'moderate': 40.0,
}


EARLY_CONFLUENCE_WEIGHTS: Dict[str, float] = {
    'short_interval_signal': 0.25,
    'rsi_momentum': 0.25,
    'volume_spike': 0.20,
    'pattern_formation': 0.20,
    'institutional_volume': 0.10,
}


@dataclass(frozen=True)
class EarlyConfluenceThresholds:
    """Cutoffs for the early confluence detector."""
    min_candles: int = 5
    short_interval_change: float = 0.5  # percent, first to last close
    rsi_low: float = 40.0
    rsi_high: float = 70.0
    rsi_tolerance: float = 5.0
    volume_spike_recent: int = 3
    volume_spike_multiplier: float = 1.5
    institutional_volume: float = 50e6
    wick_body_multiple: float = 2.0

    strong: float = 0.7
    moderate: float = 0.5
    weak: float = 0.3

    confirmation_score: float = 0.6
    probability_factor: float = 0.8


DEFAULT_SETUP_THRESHOLDS = SetupThresholds()
DEFAULT_EARLY_CONFLUENCE_THRESHOLDS = EarlyConfluenceThresholds()
