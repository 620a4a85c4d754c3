"""
Opportunity Engine - technical analysis and opportunity scoring.

Deterministic, stateless pipeline over OHLCV candles and order-book snapshots:
indicators -> turn/setup/early-confluence detection -> calibration and
per-strategy opportunity scoring -> ranked output.
"""

__version__ = "0.1.0"
