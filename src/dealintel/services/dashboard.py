"""Dashboard service: loads a consistent snapshot and runs the aggregators.

DashboardService is the only async surface of the engine. It reads the
user and their deals through an injected IntelligenceRepository, fetches
each deal's risk factors and next best actions concurrently, and only
aggregates once every fetch has settled. Deals whose sub-collections fail
to load are excluded and reported on the snapshot instead of silently
skewing the figures.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import structlog

from src.dealintel.aggregation.leads import compute_lead_metrics
from src.dealintel.aggregation.portfolio import PortfolioAggregator
from src.dealintel.config import get_settings
from src.dealintel.domain.schemas import (
    DashboardSnapshot,
    Deal,
    LeadMetrics,
    LeadScore,
    User,
)
from src.dealintel.repository.base import IntelligenceRepository
from src.dealintel.scoring.signals import LeadSignalScorer

logger = structlog.get_logger(__name__)


class DashboardService:
    """Assemble dashboard views from repository data.

    Args:
        repository: Store to read deals, leads, and users from.
        aggregator: Portfolio aggregator; a default one is built if omitted.
        scorer: Lead signal scorer; a default one is built if omitted.
    """

    def __init__(
        self,
        repository: IntelligenceRepository,
        aggregator: PortfolioAggregator | None = None,
        scorer: LeadSignalScorer | None = None,
    ) -> None:
        self._repository = repository
        self._aggregator = aggregator or PortfolioAggregator()
        self._scorer = scorer or LeadSignalScorer()

    async def _load_deal(self, deal: Deal) -> Deal:
        risks, actions = await asyncio.gather(
            self._repository.list_risk_factors(deal.id),
            self._repository.list_next_best_actions(deal.id),
        )
        return deal.model_copy(
            update={"risk_factors": risks, "next_best_actions": actions}
        )

    async def get_dashboard(
        self, user_id: str | None = None, *, now: datetime | None = None
    ) -> DashboardSnapshot:
        """Build the dashboard snapshot for a deal owner.

        Args:
            user_id: Deal owner; defaults to the configured DEFAULT_USER_ID.
            now: Reference time for close-date countdowns.

        Returns:
            DashboardSnapshot, flagged partial when any deal failed to load.
        """
        if user_id is None:
            user_id = get_settings().DEFAULT_USER_ID

        with structlog.contextvars.bound_contextvars(user_id=user_id):
            return await self._build_dashboard(user_id, now)

    async def _build_dashboard(
        self, user_id: str, now: datetime | None
    ) -> DashboardSnapshot:
        user = await self._repository.get_user(user_id)
        if user is None:
            # Unknown owners still get a dashboard against placeholder quota.
            logger.info("dashboard_user_defaulted")
            user = User(id=user_id)

        deals = await self._repository.list_deals(user_id)
        results = await asyncio.gather(
            *(self._load_deal(deal) for deal in deals), return_exceptions=True
        )

        loaded: list[Deal] = []
        missing: list[str] = []
        for deal, result in zip(deals, results):
            if isinstance(result, Exception):
                logger.warning(
                    "deal_load_failed",
                    deal_id=deal.id,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                missing.append(deal.id)
            elif isinstance(result, BaseException):
                raise result
            else:
                loaded.append(result)

        snapshot = self._aggregator.aggregate(
            loaded, user, now=now, missing_deal_ids=missing
        )
        logger.info(
            "dashboard_built",
            deal_count=len(loaded),
            missing_count=len(missing),
        )
        return snapshot

    async def get_lead_metrics(self, now: datetime | None = None) -> LeadMetrics:
        """Funnel metrics over every inbound lead."""
        leads = await self._repository.list_inbound_leads()
        return compute_lead_metrics(leads, now=now)

    async def score_leads(self, now: datetime | None = None) -> list[LeadScore]:
        """Score every prospecting lead, highest score first."""
        leads = await self._repository.list_leads()
        scores = [self._scorer.score(lead, now=now) for lead in leads]
        scores.sort(key=lambda s: s.score, reverse=True)
        return scores


__all__ = ["DashboardService"]
