"""
Opportunity scoring models.

Every scorer emits one `ConditionCheck` per rule it evaluates, met or not,
so the final `OpportunityScore` carries a complete audit trail of how the
score was reached.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ConditionCheck:
    """
    Audit-trail entry for one evaluated rule.

    Attributes:
        id: Rule identifier (e.g., 'volume', 'rsi', 'breakout')
        label: Human-readable outcome
        met: Whether the rule was satisfied
        value: Optional formatted reading behind the outcome
    """
    id: str
    label: str
    met: bool
    value: Optional[str] = None

    def to_dict(self) -> dict:
        data = {'id': self.id, 'label': self.label, 'met': self.met}
        if self.value is not None:
            data['value'] = self.value
        return data


@dataclass(frozen=True)
class RuleOutcome:
    """A rule's condition check plus the points it contributes (0 when unmet)."""
    check: ConditionCheck
    points: int = 0


@dataclass(frozen=True)
class OpportunityScore:
    """
    Scored opportunity for one symbol under one strategy modality.

    Attributes:
        symbol: Trading pair symbol
        score: Integer score clamped to [0, 100]
        conditions: Ordered condition checks, one per evaluated rule
        narrative: Tiered summary of the score
        timeframes: Intervals the score was computed from (primary first)
    """
    symbol: str
    score: int
    conditions: List[ConditionCheck] = field(default_factory=list)
    narrative: str = ""
    timeframes: List[str] = field(default_factory=list)

    @property
    def met_conditions(self) -> List[ConditionCheck]:
        return [c for c in self.conditions if c.met]

    def to_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'score': self.score,
            'conditions': [c.to_dict() for c in self.conditions],
            'narrative': self.narrative,
            'timeframes': list(self.timeframes),
        }
