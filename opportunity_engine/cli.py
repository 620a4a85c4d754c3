"""
Opportunity Engine CLI - Command-line interface.

Reads already-acquired market data from JSON files; nothing is fetched.

Market data file layout for `rank`:

    {"BTCUSDT": {"3m": {"candles": [...], "order_book": {...}}, "15m": {...}}}

Candles are either OHLCV objects or exchange kline rows
`[open_time, open, high, low, close, volume, ...]`. The first interval of
each symbol is its primary timeframe.

`rank` keeps only the intervals of the selected timeframe options (short 3m,
medium 15m, higher 1h), in that order, and optionally restricts the file to
an explicit symbol list or the built-in default universe.
"""
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import typer
from loguru import logger

from opportunity_engine.analysis.market_turn import detect_unified_market_turn
from opportunity_engine.shared.config.defaults import DEFAULT_SYMBOLS
from opportunity_engine.shared.config.strategy_modalities import StrategyModality, list_modalities
from opportunity_engine.shared.config.timeframes import DEFAULT_TIMEFRAMES, get_exchange_intervals
from opportunity_engine.shared.models.data import Candle, MarketData, OrderBookDepth

app = typer.Typer(help="📊 Opportunity Engine - Technical analysis and opportunity scoring")


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def parse_candles(rows: List[Any]) -> List[Candle]:
    return [Candle.from_dict(row) if isinstance(row, dict) else Candle.from_kline(row) for row in rows]


def parse_market_data(payload: Dict[str, Any]) -> Dict[str, Dict[str, MarketData]]:
    """Convert the JSON payload into per-symbol, per-interval MarketData."""
    market_data: Dict[str, Dict[str, MarketData]] = {}
    for symbol, timeframes in payload.items():
        by_interval: Dict[str, MarketData] = {}
        for interval, entry in timeframes.items():
            book = entry.get('order_book')
            by_interval[interval] = MarketData(
                candles=parse_candles(entry.get('candles', [])),
                interval=interval,
                order_book=OrderBookDepth.from_dict(book) if book else None,
            )
        market_data[symbol] = by_interval
    return market_data


def select_market_data(
    market_data: Mapping[str, Mapping[str, MarketData]],
    intervals: Sequence[str],
    symbols: Optional[Sequence[str]] = None,
) -> Dict[str, Dict[str, MarketData]]:
    """
    Restrict market data to the requested intervals and symbols.

    Intervals are re-ordered to follow `intervals` so the first available one
    becomes the primary timeframe. Requested symbols missing from the file are
    ignored; `symbols=None` keeps every symbol.
    """
    wanted = list(market_data) if symbols is None else [s for s in symbols if s in market_data]
    return {
        symbol: {
            interval: market_data[symbol][interval]
            for interval in intervals
            if interval in market_data[symbol]
        }
        for symbol in wanted
    }


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(',') if item.strip()]


def _resolve_symbols(value: str) -> Optional[List[str]]:
    if not value:
        return None
    if value.lower() == 'default':
        return list(DEFAULT_SYMBOLS)
    return [s.upper() for s in _split_csv(value)]


def _load_json(path: Path) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


@app.command()
def rank(
    data_file: Path = typer.Argument(..., help="JSON market data file"),
    modality: str = typer.Option("scalping", help="Strategy modality identifier"),
    limit: int = typer.Option(20, help="Maximum ranked symbols"),
    workers: int = typer.Option(0, help="Thread pool size (0 = sequential)"),
    timeframes: str = typer.Option(
        ",".join(DEFAULT_TIMEFRAMES), help="Comma-separated timeframe ids (short/medium/higher)"
    ),
    symbols: str = typer.Option(
        "", help="Comma-separated symbols, 'default' for the built-in universe, empty for all in file"
    ),
    output: str = typer.Option("console", help="Output format (console/json)"),
    log_level: str = typer.Option("WARNING", help="Log level"),
):
    """
    🎯 Rank symbols by opportunity score for a strategy modality.
    """
    from opportunity_engine.services.opportunity_service import rank_opportunities

    configure_logging(log_level)

    intervals = get_exchange_intervals(_split_csv(timeframes))
    if not intervals:
        typer.echo(f"❌ No known timeframe in '{timeframes}'", err=True)
        raise typer.Exit(code=1)

    try:
        strategy = StrategyModality.parse(modality)
        market_data = select_market_data(
            parse_market_data(_load_json(data_file)), intervals, _resolve_symbols(symbols),
        )
        ranked = rank_opportunities(strategy, market_data, limit=limit, max_workers=workers)
    except (OSError, ValueError, KeyError, TypeError) as e:
        typer.echo(f"❌ Ranking failed: {e}", err=True)
        raise typer.Exit(code=1)

    if output == "json":
        typer.echo(json.dumps([item.to_dict() for item in ranked], indent=2))
        return

    typer.echo(f"🎯 {strategy.value}: {len(ranked)} ranked of {len(market_data)} symbols")
    typer.echo("=" * 60)
    for i, item in enumerate(ranked, 1):
        typer.echo(f"\n{i}. {item.symbol} - {item.score}/100")
        for condition in item.conditions:
            mark = "✅" if condition.met else "·"
            value = f" ({condition.value})" if condition.value else ""
            typer.echo(f"   {mark} {condition.label}{value}")
        typer.echo(f"   {item.narrative}")


@app.command()
def turn(
    candles_file: Path = typer.Argument(..., help="JSON list of candles, oldest first"),
    interval: str = typer.Option("15m", help="Interval label"),
    output: str = typer.Option("console", help="Output format (console/json)"),
    log_level: str = typer.Option("WARNING", help="Log level"),
):
    """
    🔄 Detect the latest market turn in a candle file.
    """
    configure_logging(log_level)

    try:
        candles = parse_candles(_load_json(candles_file))
        result = detect_unified_market_turn(candles, interval)
    except (OSError, ValueError, KeyError, TypeError) as e:
        typer.echo(f"❌ Turn detection failed: {e}", err=True)
        raise typer.Exit(code=1)

    if output == "json":
        payload = {
            'turn': result.turn.to_dict(),
            'ema20': result.ema20,
            'ema50': result.ema50,
            'candle_count': result.debug_info.candle_count,
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    if result.detected:
        typer.echo(
            f"🔄 {result.type.value.capitalize()} {result.direction.value} turn "
            f"({result.confidence:.0%}) - {result.turn.reason}"
        )
    else:
        typer.echo(f"📭 {result.turn.reason}")
    if result.ema20 is not None and result.ema50 is not None:
        typer.echo(f"   EMA20 {result.ema20:.4f} | EMA50 {result.ema50:.4f}")


@app.command()
def modalities():
    """
    📋 List the strategy modality catalogue.
    """
    for info in list_modalities():
        typer.echo(f"{info['id']:<26} {info['category']:<14} {info['label']}")


if __name__ == "__main__":
    app()
