"""
Technical Indicators Package

Provides:
- Trend indicators (EMA)
- Momentum indicators (RSI, latest RSI with short-run proxy)
- Volatility indicators (ATR)
- Price structure and candlestick patterns (swings, engulfing, pin bar)
- Volume indicators (volume ratio, VWAP, volume spike)
- Data validation utilities

All series functions follow consistent patterns:
- Accept prices or candles oldest first (sequences or an OHLCV DataFrame)
- Return pandas Series indexed by candle position
- Return an empty Series below the warmup period
"""

from opportunity_engine.indicators.trend import (
    ema,
    as_price_series,
    last_value,
)

from opportunity_engine.indicators.momentum import (
    rsi,
    rsi_value,
)

from opportunity_engine.indicators.volatility import (
    atr,
    true_range,
)

from opportunity_engine.indicators.patterns import (
    SwingPoints,
    detect_swing_high_low,
    classify_engulfing,
    classify_pin_bar,
)

from opportunity_engine.indicators.volume import (
    compute_volume_ratio,
    compute_vwap,
    detect_volume_spike,
)

from opportunity_engine.indicators.validation_utils import (
    validate_ohlcv,
    validate_candles,
    DataValidationError,
    NonFiniteError,
)

__all__ = [
    # Trend
    'ema',
    'as_price_series',
    'last_value',
    # Momentum
    'rsi',
    'rsi_value',
    # Volatility
    'atr',
    'true_range',
    # Patterns
    'SwingPoints',
    'detect_swing_high_low',
    'classify_engulfing',
    'classify_pin_bar',
    # Volume
    'compute_volume_ratio',
    'compute_vwap',
    'detect_volume_spike',
    # Validation
    'validate_ohlcv',
    'validate_candles',
    'DataValidationError',
    'NonFiniteError',
]
