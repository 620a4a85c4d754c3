"""
Opportunity timeframe options.

The ranking consumes candles for one or more intervals per symbol; the
first selected interval is the primary timeframe the scorers run on.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class TimeframeOption:
    id: str
    label: str
    exchange_interval: str
    description: str


TIMEFRAME_OPTIONS: Tuple[TimeframeOption, ...] = (
    TimeframeOption(
        id='short',
        label='3m (Short)',
        exchange_interval='3m',
        description='Scalping & Day Trade - High frequency signals',
    ),
    TimeframeOption(
        id='medium',
        label='15m (Medium)',
        exchange_interval='15m',
        description='Day Trade & Swing - Intraday movements',
    ),
    TimeframeOption(
        id='higher',
        label='1h (Higher)',
        exchange_interval='1h',
        description='Swing & Position - Broader confirmation',
    ),
)

DEFAULT_TIMEFRAMES: Tuple[str, ...] = ('short', 'medium')

_BY_ID: Dict[str, TimeframeOption] = {tf.id: tf for tf in TIMEFRAME_OPTIONS}


def get_timeframe_by_id(timeframe_id: str) -> Optional[TimeframeOption]:
    return _BY_ID.get(timeframe_id)


def get_exchange_intervals(timeframe_ids: Iterable[str]) -> List[str]:
    """Map timeframe ids to exchange intervals, dropping unknown ids, order preserved."""
    return [
        tf.exchange_interval
        for tf in (get_timeframe_by_id(tid) for tid in timeframe_ids)
        if tf is not None
    ]
