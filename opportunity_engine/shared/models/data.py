"""
Data models for OHLCV candles, order-book snapshots and per-timeframe market data.

Candles are supplied oldest-first by the market-data collaborator and are
treated as immutable. Indicator code works on pandas frames built with
`candles_to_frame`, the same column layout used throughout the engine:
[timestamp, open, high, low, close, volume].
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union
import pandas as pd


OHLCV_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']


@dataclass(frozen=True)
class Candle:
    """
    Single OHLCV candlestick.

    Attributes:
        timestamp: Candle open time (ms since epoch)
        open: Opening price
        high: Highest price during period
        low: Lowest price during period
        close: Closing price
        volume: Traded volume
    """
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def upper_wick(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> float:
        return min(self.open, self.close) - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Candle':
        """Build a candle from a mapping with OHLCV keys."""
        return cls(
            timestamp=int(data['timestamp']),
            open=float(data['open']),
            high=float(data['high']),
            low=float(data['low']),
            close=float(data['close']),
            volume=float(data['volume']),
        )

    @classmethod
    def from_kline(cls, kline: Sequence[Any]) -> 'Candle':
        """
        Build a candle from an exchange kline row.

        Kline rows are `[open_time, open, high, low, close, volume, ...]` with
        prices encoded as strings.
        """
        return cls(
            timestamp=int(kline[0]),
            open=float(kline[1]),
            high=float(kline[2]),
            low=float(kline[3]),
            close=float(kline[4]),
            volume=float(kline[5]),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            'timestamp': self.timestamp,
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume,
        }


@dataclass(frozen=True)
class OrderBookLevel:
    """One price level of an order book side."""
    price: float
    quantity: float


@dataclass(frozen=True)
class OrderBookDepth:
    """
    Order-book snapshot.

    Attributes:
        bids: Bid levels, best (highest) price first
        asks: Ask levels, best (lowest) price first
        last_update_id: Exchange sequence number of the snapshot
    """
    bids: List[OrderBookLevel] = field(default_factory=list)
    asks: List[OrderBookLevel] = field(default_factory=list)
    last_update_id: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'OrderBookDepth':
        """Build a snapshot from `{bids: [[price, qty], ...], asks: [...], lastUpdateId}`."""
        def _levels(rows: Iterable[Any]) -> List[OrderBookLevel]:
            levels = []
            for row in rows:
                if isinstance(row, Mapping):
                    levels.append(OrderBookLevel(float(row['price']), float(row['quantity'])))
                else:
                    levels.append(OrderBookLevel(float(row[0]), float(row[1])))
            return levels

        return cls(
            bids=_levels(data.get('bids', [])),
            asks=_levels(data.get('asks', [])),
            last_update_id=int(data.get('lastUpdateId', data.get('last_update_id', 0))),
        )


@dataclass(frozen=True)
class MarketData:
    """
    Candles for one (symbol, interval) pair, optionally with an order book.

    The order book is only attached to the primary (shortest) interval.
    """
    candles: List[Candle]
    interval: str
    order_book: Optional[OrderBookDepth] = None


# Per-symbol market data keyed by interval. Insertion order matters: the first
# interval is the primary timeframe used for scoring.
TimeframeData = Mapping[str, MarketData]

CandleInput = Union[Sequence[Candle], pd.DataFrame]


def candles_to_frame(candles: CandleInput) -> pd.DataFrame:
    """
    Convert a candle sequence to an OHLCV DataFrame with a positional index.

    DataFrames are passed through unchanged so callers can hand either form
    to the indicator functions.
    """
    if isinstance(candles, pd.DataFrame):
        return candles
    if len(candles) == 0:
        return pd.DataFrame(columns=OHLCV_COLUMNS, dtype=float)
    return pd.DataFrame(
        [(c.timestamp, c.open, c.high, c.low, c.close, c.volume) for c in candles],
        columns=OHLCV_COLUMNS,
    )


def closes_of(candles: Sequence[Candle]) -> List[float]:
    """Close prices of a candle sequence, oldest first."""
    return [c.close for c in candles]
