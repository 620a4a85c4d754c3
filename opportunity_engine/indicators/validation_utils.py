"""
OHLCV Data Validation Utilities

Provides centralized input validation for the engine's public entry points
to catch data quality issues early and prevent NaN propagation into
composite scores.
"""

from typing import Optional
import numpy as np
import pandas as pd
import logging

from opportunity_engine.shared.models.data import CandleInput, candles_to_frame

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ["open", "high", "low", "close"]


class DataValidationError(ValueError):
    """Raised when OHLCV data fails validation checks."""


class NonFiniteError(DataValidationError):
    """Raised when OHLCV data contains NaN or infinite values."""


def validate_ohlcv(
    df: pd.DataFrame,
    require_volume: bool = True,
    check_nan: bool = True,
    check_positive_prices: bool = True,
    check_candle_integrity: bool = True,
    check_positive_volume: bool = True,
    max_zero_volume_pct: Optional[float] = 80.0,
    min_rows: Optional[int] = None,
    raise_on_error: bool = True,
) -> dict:
    """
    Validate OHLCV DataFrame before indicator calculation.

    Args:
        df: DataFrame with OHLCV columns
        require_volume: If True, require 'volume' column (default True)
        check_nan: If True, check for NaN values in price columns (default True)
        check_positive_prices: If True, verify O/H/L/C > 0 (default True)
        check_candle_integrity: If True, verify high >= low (default True)
        check_positive_volume: If True, verify volume >= 0 (default True)
        max_zero_volume_pct: Share of zero-volume bars above which the data
            is rejected (None disables the check)
        min_rows: Minimum required rows (None = no minimum)
        raise_on_error: If True, raise DataValidationError; else return dict

    Returns:
        dict with validation results:
            - valid: bool indicating if all checks passed
            - errors: list of error messages
            - warnings: list of warning messages

    Raises:
        DataValidationError: If validation fails and raise_on_error=True
    """
    result = {"valid": True, "errors": [], "warnings": []}

    required_cols = ["high", "low", "close"]
    if require_volume:
        required_cols.append("volume")

    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        result["errors"].append(f"Missing required columns: {missing_cols}")
        result["valid"] = False

    # Early exit if missing columns
    if not result["valid"]:
        if raise_on_error:
            raise DataValidationError("; ".join(result["errors"]))
        return result

    if min_rows is not None and len(df) < min_rows:
        result["errors"].append(f"DataFrame too short: need {min_rows} rows, got {len(df)}")
        result["valid"] = False

    if check_nan:
        for col in PRICE_COLUMNS:
            if col in df.columns:
                nan_count = df[col].isna().sum()
                if nan_count > 0:
                    nan_pct = (nan_count / len(df)) * 100
                    if nan_pct > 10:
                        result["errors"].append(
                            f"Column '{col}' has {nan_count} NaN values ({nan_pct:.1f}%)"
                        )
                        result["valid"] = False
                    else:
                        result["warnings"].append(
                            f"Column '{col}' has {nan_count} NaN values ({nan_pct:.1f}%)"
                        )

    if check_positive_prices:
        for col in PRICE_COLUMNS:
            if col in df.columns:
                non_positive = (df[col] <= 0).sum()
                if non_positive > 0:
                    result["errors"].append(
                        f"Column '{col}' has {non_positive} non-positive values"
                    )
                    result["valid"] = False

    if check_candle_integrity and "high" in df.columns and "low" in df.columns:
        inverted = (df["high"] < df["low"]).sum()
        if inverted > 0:
            result["errors"].append(
                f"Found {inverted} inverted candles (high < low) - data corruption suspected"
            )
            result["valid"] = False

    if check_positive_volume and "volume" in df.columns:
        negative_volume = (df["volume"] < 0).sum()
        if negative_volume > 0:
            result["errors"].append(f"Found {negative_volume} negative volume values")
            result["valid"] = False

        zero_volume = (df["volume"] == 0).sum()
        if zero_volume > 0 and len(df) > 0:
            zero_pct = (zero_volume / len(df)) * 100
            if max_zero_volume_pct is not None and zero_pct > max_zero_volume_pct:
                result["errors"].append(
                    f"Found {zero_volume} zero volume bars ({zero_pct:.1f}%) - possible data issue"
                )
                result["valid"] = False
            elif zero_pct > 10:
                result["warnings"].append(f"Found {zero_volume} zero volume bars ({zero_pct:.1f}%)")

    if raise_on_error and not result["valid"]:
        raise DataValidationError("; ".join(result["errors"]))

    return result


def validate_candles(candles: CandleInput, name: str = "candles") -> None:
    """
    Fail-fast boundary check for candles supplied from outside the engine.

    Rejects NaN/infinite values (NonFiniteError), non-positive prices,
    negative volume and inverted candles (DataValidationError). Short or
    empty sequences pass: insufficient data is handled by each detector's
    own sentinel.

    Raises:
        NonFiniteError: If any OHLCV value is NaN or infinite
        DataValidationError: If prices, volume or candle geometry are invalid
    """
    df = candles_to_frame(candles)
    if len(df) == 0:
        return

    columns = [col for col in PRICE_COLUMNS + ["volume"] if col in df.columns]
    values = df[columns].to_numpy(dtype=float)
    non_finite = ~np.isfinite(values)
    if non_finite.any():
        counts = {col: int(n) for col, n in zip(columns, non_finite.sum(axis=0)) if n}
        raise NonFiniteError(f"{name}: non-finite values {counts}")

    report = validate_ohlcv(
        df,
        require_volume=True,
        check_nan=False,
        max_zero_volume_pct=None,
        raise_on_error=False,
    )
    if not report["valid"]:
        raise DataValidationError(f"{name}: " + "; ".join(report["errors"]))
    for warning in report["warnings"]:
        logger.debug(f"{name}: {warning}")
