"""Strategy-modality opportunity scoring."""

from opportunity_engine.strategy.opportunity.engine import (
    generate_narrative,
    insufficient_data_score,
    score_opportunity,
)
from opportunity_engine.strategy.opportunity.scorers import SCORERS, ScoringContext

__all__ = [
    'SCORERS',
    'ScoringContext',
    'generate_narrative',
    'insufficient_data_score',
    'score_opportunity',
]
