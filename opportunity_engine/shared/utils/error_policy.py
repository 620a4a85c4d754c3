"""
Error policy enforcement - no silent failures.

Engine outputs that leave the library (ranked scores, weight tables) must be
complete and internally consistent. Absence of a signal is not an error;
these checks only fire on outputs that violate their own contracts.
"""

import math
from typing import Mapping, Optional

from opportunity_engine.shared.models.scoring import OpportunityScore


class IncompleteScoreError(Exception):
    """Raised when an opportunity score has missing or out-of-range fields."""


class WeightBudgetError(Exception):
    """Raised when a weight table does not sum to its budget."""


def enforce_complete_score(score: Optional[OpportunityScore]) -> None:
    """
    Ensure an opportunity score is complete and valid.

    Raises:
        IncompleteScoreError: If any required field is missing or out of range
    """
    if score is None:
        raise IncompleteScoreError("OpportunityScore is None")

    if not score.symbol:
        raise IncompleteScoreError("symbol is empty")

    if not isinstance(score.score, int) or not 0 <= score.score <= 100:
        raise IncompleteScoreError(f"score out of range: {score.score}")

    # Every scorer emits at least one condition, even the insufficient-data path
    if not score.conditions:
        raise IncompleteScoreError(f"No conditions recorded for {score.symbol}")

    if not score.narrative or score.narrative.strip() == "":
        raise IncompleteScoreError(f"narrative is empty for {score.symbol}")


def enforce_weight_budget(weights: Mapping[str, float], budget: float = 1.0) -> None:
    """
    Ensure a weight table is non-negative and sums to `budget`.

    Raises:
        WeightBudgetError: If a weight is negative or the total is off budget
    """
    negative = [k for k, w in weights.items() if w < 0]
    if negative:
        raise WeightBudgetError(f"Negative weights: {negative}")

    total = math.fsum(weights.values())
    if not math.isclose(total, budget, abs_tol=1e-9):
        raise WeightBudgetError(f"Weights sum to {total}, expected {budget}")
