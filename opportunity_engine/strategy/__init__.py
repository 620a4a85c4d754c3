"""Scoring strategies: institutional setup/calibration, early confluence, opportunities."""
