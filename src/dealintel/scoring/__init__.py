"""Deterministic scorers for leads and deals.

Provides:
- LeadSignalScorer: 0-100 lead propensity score with top-3 factors
- Risk ranking: open risks ordered by severity, top risk per deal
- Action prioritization: urgent and today's actions ordered by priority
- MEDDIC aggregation: six 0-10 dimensions into a 0-100 overall score
"""

from src.dealintel.scoring.actions import (
    deal_room_actions,
    prioritize,
    today_actions,
    urgent_actions,
)
from src.dealintel.scoring.meddic import overall_score, weakest_categories
from src.dealintel.scoring.risk import open_risks, top_risk, top_risk_description
from src.dealintel.scoring.signals import LeadSignalScorer

__all__ = [
    "LeadSignalScorer",
    "open_risks",
    "top_risk",
    "top_risk_description",
    "urgent_actions",
    "prioritize",
    "deal_room_actions",
    "today_actions",
    "overall_score",
    "weakest_categories",
]
