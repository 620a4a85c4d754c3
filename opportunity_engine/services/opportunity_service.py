"""
Opportunity Service - Per-symbol scoring, ranking and asset enrichment

Contains:
- rank_opportunities: score every symbol for a modality and rank them
- OpportunityService: ranking plus the institutional enrichment pipeline
  (early confluence -> institutional setup -> calibration)

Scoring is pure, so symbols can be scored on a thread pool without
coordination. Ranking order is score descending, then symbol ascending.
"""

import concurrent.futures
import logging
import time
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from opportunity_engine.indicators.validation_utils import DataValidationError
from opportunity_engine.shared.config.defaults import DEFAULT_SCORING
from opportunity_engine.shared.config.strategy_modalities import StrategyModality
from opportunity_engine.shared.models.data import Candle, TimeframeData
from opportunity_engine.shared.models.institutional import AssetSnapshot
from opportunity_engine.shared.models.scoring import OpportunityScore
from opportunity_engine.shared.utils.error_policy import enforce_complete_score
from opportunity_engine.shared.utils.logging_utils import (
    format_ranking_summary,
    log_pipeline_stage,
    log_rejection,
    time_operation,
)
from opportunity_engine.strategy.confluence.early_confluence import detect_early_confluence
from opportunity_engine.strategy.institutional.calibration import calculate_institutional_calibration
from opportunity_engine.strategy.institutional.setup import detect_institutional_setup
from opportunity_engine.strategy.opportunity.engine import score_opportunity

logger = logging.getLogger(__name__)

ScoreOutcome = Tuple[str, Optional[OpportunityScore], Optional[str]]


def _score_symbol(symbol: str, modality: StrategyModality, data: TimeframeData) -> ScoreOutcome:
    """Score one symbol; malformed input yields (symbol, None, reason)."""
    try:
        result = score_opportunity(symbol, modality, data)
    except DataValidationError as e:
        return symbol, None, str(e)
    enforce_complete_score(result)
    return symbol, result, None


def sort_scores(scores: Sequence[OpportunityScore]) -> List[OpportunityScore]:
    """Score descending, ties broken by ascending symbol."""
    return sorted(scores, key=lambda s: (-s.score, s.symbol))


def rank_opportunities(
    modality: Union[StrategyModality, str],
    market_data_by_symbol: Mapping[str, TimeframeData],
    limit: int = DEFAULT_SCORING.ranking_limit,
    max_workers: Optional[int] = None,
) -> List[OpportunityScore]:
    """
    Score and rank every symbol for a strategy modality.

    Args:
        modality: Strategy modality (identifier strings are parsed)
        market_data_by_symbol: Per-timeframe market data keyed by symbol
        limit: Maximum number of ranked scores returned
        max_workers: Thread pool size; None or a value below 1 scores
            symbols sequentially

    Returns:
        Ranked scores, at most `limit`

    Raises:
        ValueError: If `modality` is not a known strategy identifier
    """
    if not isinstance(modality, StrategyModality):
        modality = StrategyModality.parse(modality)

    start = time.perf_counter()
    outcomes: List[ScoreOutcome] = []

    with time_operation(f"rank_opportunities[{modality.value}]"):
        if max_workers is None or max_workers < 1:
            for symbol, data in market_data_by_symbol.items():
                outcomes.append(_score_symbol(symbol, modality, data))
        else:
            with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [
                    executor.submit(_score_symbol, symbol, modality, data)
                    for symbol, data in market_data_by_symbol.items()
                ]
                for future in concurrent.futures.as_completed(futures):
                    outcomes.append(future.result())

    scored: List[OpportunityScore] = []
    skipped = 0
    for symbol, result, reason in outcomes:
        if result is None:
            skipped += 1
            log_rejection(symbol, "SCORING", reason or "Invalid market data")
        else:
            scored.append(result)

    ranked = sort_scores(scored)[:max(0, limit)]

    logger.debug(
        "\n%s",
        format_ranking_summary(modality.value, ranked, len(scored), skipped, time.perf_counter() - start),
    )
    return ranked


class OpportunityService:
    """
    Service bundling opportunity ranking and institutional asset analysis.

    Usage:
        service = OpportunityService(max_workers=4)
        ranked = service.rank('scalping', market_data_by_symbol)
        enriched = service.analyze_asset(asset, candles_1m, candles_5m)
    """

    def __init__(
        self,
        limit: int = DEFAULT_SCORING.ranking_limit,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize opportunity service.

        Args:
            limit: Default ranking size
            max_workers: Thread pool size for ranking (None = sequential)
        """
        self._limit = limit
        self._max_workers = max_workers

    def score(
        self,
        symbol: str,
        modality: Union[StrategyModality, str],
        market_data_by_timeframe: TimeframeData,
    ) -> OpportunityScore:
        return score_opportunity(symbol, modality, market_data_by_timeframe)

    def rank(
        self,
        modality: Union[StrategyModality, str],
        market_data_by_symbol: Mapping[str, TimeframeData],
        limit: Optional[int] = None,
    ) -> List[OpportunityScore]:
        return rank_opportunities(
            modality,
            market_data_by_symbol,
            limit=self._limit if limit is None else limit,
            max_workers=self._max_workers,
        )

    def analyze_asset(
        self,
        asset: AssetSnapshot,
        candles_1m: Sequence[Candle],
        candles_5m: Sequence[Candle],
    ) -> AssetSnapshot:
        """
        Enrich an asset snapshot with early confluence, institutional setup
        and calibration, in that order.

        Raises:
            DataValidationError: If either candle window is malformed
        """
        symbol = asset.symbol

        log_pipeline_stage("EARLY_CONFLUENCE", symbol)
        early = detect_early_confluence(candles_1m, candles_5m, asset.volume)
        asset = replace(asset, early_confluence=early)
        log_pipeline_stage("EARLY_CONFLUENCE", symbol, "COMPLETE", {'score': early.confluence_score})

        log_pipeline_stage("INSTITUTIONAL_SETUP", symbol)
        setup = detect_institutional_setup(asset)
        asset = replace(asset, institutional_setup=setup)
        log_pipeline_stage("INSTITUTIONAL_SETUP", symbol, "COMPLETE", {'progress': f"{setup.setup_progress}/8"})

        log_pipeline_stage("CALIBRATION", symbol)
        calibration = calculate_institutional_calibration(asset)
        log_pipeline_stage(
            "CALIBRATION", symbol, "COMPLETE",
            {'composite': calibration.composite_score, 'level': calibration.calibration_level.value},
        )

        return replace(asset, institutional_calibration=calibration)

    def analyze_assets(
        self,
        assets: Sequence[AssetSnapshot],
        candles_by_symbol: Mapping[str, Tuple[Sequence[Candle], Sequence[Candle]]],
    ) -> Dict[str, AssetSnapshot]:
        """Analyze every asset that has (1m, 5m) candles; others pass through unchanged."""
        results: Dict[str, AssetSnapshot] = {}
        for asset in assets:
            windows = candles_by_symbol.get(asset.symbol)
            if windows is None:
                results[asset.symbol] = asset
                continue
            results[asset.symbol] = self.analyze_asset(asset, windows[0], windows[1])
        return results


_opportunity_service: Optional[OpportunityService] = None


def get_opportunity_service() -> Optional[OpportunityService]:
    """Get the singleton OpportunityService instance."""
    return _opportunity_service


def configure_opportunity_service(
    limit: int = DEFAULT_SCORING.ranking_limit,
    max_workers: Optional[int] = None,
) -> OpportunityService:
    """Configure and return the singleton OpportunityService."""
    global _opportunity_service
    _opportunity_service = OpportunityService(limit=limit, max_workers=max_workers)
    return _opportunity_service
