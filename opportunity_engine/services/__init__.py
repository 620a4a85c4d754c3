"""Services package - Ranking and asset analysis services."""

from opportunity_engine.services.opportunity_service import (
    OpportunityService,
    configure_opportunity_service,
    get_opportunity_service,
    rank_opportunities,
    sort_scores,
)

__all__ = [
    "OpportunityService",
    "configure_opportunity_service",
    "get_opportunity_service",
    "rank_opportunities",
    "sort_scores",
]
