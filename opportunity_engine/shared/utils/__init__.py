"""Logging and error-policy helpers."""
