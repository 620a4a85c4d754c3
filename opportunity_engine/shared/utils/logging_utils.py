"""
Logging utilities for the scoring pipeline.

Provides consistent, structured logging helpers for tracking analysis
stages, skipped symbols, timing, and ranking summaries. These helpers only
emit records; sinks are configured by the CLI.
"""

import time
from typing import Any, Dict, Optional, Sequence
from loguru import logger

from opportunity_engine.shared.models.scoring import OpportunityScore


def log_pipeline_stage(
    stage_name: str,
    symbol: str,
    status: str = "START",
    data: Optional[Dict[str, Any]] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log a pipeline stage with consistent formatting.

    Args:
        stage_name: Name of the stage (e.g., "EARLY_CONFLUENCE", "CALIBRATION")
        symbol: Trading symbol being processed
        status: Stage status ("START", "COMPLETE", "FAILED")
        data: Optional additional data to log
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    if status == "START":
        log_func(f"🔄 [{stage_name}] Starting for {symbol}")
    elif status == "COMPLETE":
        duration_msg = f" ({data.get('duration_ms', 0):.0f}ms)" if data and 'duration_ms' in data else ""
        log_func(f"✅ [{stage_name}] Completed for {symbol}{duration_msg}")
        if data:
            for key, value in data.items():
                if key != 'duration_ms':
                    log_func(f"   └─ {key}: {value}")
    elif status == "FAILED":
        log_func(f"❌ [{stage_name}] Failed for {symbol}")
        if data:
            log_func(f"   └─ Reason: {data.get('reason', 'Unknown')}")
            if 'error' in data:
                log_func(f"   └─ Error: {data['error']}")


def log_rejection(
    symbol: str,
    stage: str,
    reason: str,
    diagnostics: Optional[Dict[str, Any]] = None,
    level: str = "WARNING"
) -> None:
    """
    Log a skipped symbol with diagnostic context.

    Args:
        symbol: Trading symbol
        stage: Pipeline stage where the symbol was dropped
        reason: Human-readable reason
        diagnostics: Detailed diagnostic data
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.warning)

    log_func(f"🚫 SKIPPED: {symbol} at {stage}")
    log_func(f"   └─ Reason: {reason}")

    if diagnostics:
        log_func("   └─ Diagnostics:")
        for key, value in diagnostics.items():
            if isinstance(value, float):
                log_func(f"      • {key}: {value:.4f}")
            else:
                log_func(f"      • {key}: {value}")


def log_timing(
    operation_name: str,
    duration_ms: float,
    symbol: Optional[str] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log timing information for performance monitoring.

    Args:
        operation_name: Name of the operation being timed
        duration_ms: Duration in milliseconds
        symbol: Optional symbol context
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    symbol_str = f" [{symbol}]" if symbol else ""

    if duration_ms < 100:
        emoji = "⚡"
    elif duration_ms < 1000:
        emoji = "⏱️"
    else:
        emoji = "🐌"

    log_func(f"{emoji} {operation_name}{symbol_str}: {duration_ms:.0f}ms")


def format_ranking_summary(
    modality: str,
    ranked: Sequence[OpportunityScore],
    symbols_scored: int,
    symbols_skipped: int,
    duration_sec: float,
) -> str:
    """
    Format a ranking completion summary.

    Args:
        modality: Strategy modality identifier
        ranked: Ranked scores (already sorted and truncated)
        symbols_scored: Symbols that produced a score
        symbols_skipped: Symbols dropped by input validation
        duration_sec: Total ranking duration in seconds

    Returns:
        Formatted summary string
    """
    lines = [
        "=" * 80,
        f"📊 RANKING SUMMARY ({modality})",
        "=" * 80,
        f"Symbols Scored:     {symbols_scored}",
        f"🚫 Symbols Skipped:  {symbols_skipped}",
        f"⏱️  Total Duration:    {duration_sec:.2f}s",
    ]

    if ranked:
        lines.append("")
        lines.append("Top Opportunities:")
        for position, item in enumerate(ranked, start=1):
            met = len(item.met_conditions)
            lines.append(
                f"  {position:>2}. {item.symbol:<12} {item.score:>3}/100  "
                f"({met}/{len(item.conditions)} conditions)"
            )

    lines.append("=" * 80)

    return "\n".join(lines)


class TimingContext:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, symbol: Optional[str] = None):
        self.operation_name = operation_name
        self.symbol = symbol
        self.start_time = None
        self.duration_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        log_timing(self.operation_name, self.duration_ms, self.symbol)
        return False  # Don't suppress exceptions


def time_operation(operation_name: str, symbol: Optional[str] = None) -> TimingContext:
    """
    Context manager for timing operations.

    Usage:
        with time_operation("rank_opportunities"):
            ...
    """
    return TimingContext(operation_name, symbol)
