"""Portfolio roll-up of active deals into the AE dashboard snapshot.

Every monetary figure is summed over exactly the active deals (stage not
CLOSED_WON / CLOSED_LOST). Closed-won revenue is read from the user
record, never derived from deals, so historical wins outside the loaded
deal set still count toward quota.

Forecast bands are cumulative:
    commit    = closed_won + negotiation value
    best_case = commit + proposal value
    pipeline  = best_case + every other active stage
so commit <= best_case <= pipeline for any non-negative deal values.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

import structlog

from src.dealintel.config import get_settings
from src.dealintel.core.numbers import percent_fraction, round_half_up, safe_ratio
from src.dealintel.domain.schemas import (
    DashboardSnapshot,
    Deal,
    DealAtRisk,
    DealStage,
    ForecastData,
    PipelineStageSummary,
    QuotaAttainment,
    User,
)
from src.dealintel.lifecycle.deals import ACTIVE_STAGES
from src.dealintel.scoring.actions import UNKNOWN_ACCOUNT, today_actions
from src.dealintel.scoring.risk import top_risk_description

logger = structlog.get_logger(__name__)


def active_deals(deals: Iterable[Deal]) -> list[Deal]:
    """Deals still in the open pipeline, in input order."""
    return [d for d in deals if d.is_active]


def weighted_pipeline(deals: Iterable[Deal]) -> float:
    """Sum of value * probability / 100 over active deals."""
    return sum(d.value * d.probability / 100 for d in deals if d.is_active)


def _stage_value(deals: Sequence[Deal], stage: DealStage) -> float:
    return sum(d.value for d in deals if d.stage == stage)


def quota_attainment(deals: Iterable[Deal], user: User) -> QuotaAttainment:
    """Quota progress for the deal owner.

    A zero quota yields 0% attainment rather than a division error.
    ``pipeline_coverage`` is open pipeline divided by the remaining gap,
    0 when the quota is already met or nothing is in the pipeline.
    """
    active = active_deals(deals)
    weighted = weighted_pipeline(active)
    total_pipeline = sum(d.value for d in active)
    closed_won = user.closed_won_ytd
    gap = user.quota - closed_won

    coverage = 0.0
    if total_pipeline > 0 and gap > 0:
        coverage = percent_fraction(total_pipeline, gap)

    return QuotaAttainment(
        quota=user.quota,
        closed_won=closed_won,
        weighted_pipeline=round_half_up(weighted),
        gap=gap,
        projected=round_half_up(closed_won + weighted),
        attainment_percent=round_half_up(safe_ratio(closed_won, user.quota) * 100),
        pipeline_coverage=coverage,
    )


def pipeline_by_stage(deals: Iterable[Deal]) -> list[PipelineStageSummary]:
    """Count and value per open stage; every open stage is always listed."""
    active = active_deals(deals)
    summary: list[PipelineStageSummary] = []
    for stage, label in ACTIVE_STAGES:
        stage_deals = [d for d in active if d.stage == stage]
        summary.append(
            PipelineStageSummary(
                stage=stage,
                label=label,
                count=len(stage_deals),
                value=sum(d.value for d in stage_deals),
            )
        )
    return summary


def _days_until(moment: datetime | None, now: datetime) -> int | None:
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    seconds = (moment - now).total_seconds()
    # Partial days count as a full day remaining.
    return -int(-seconds // 86400)


def deals_at_risk(
    deals: Iterable[Deal],
    *,
    threshold: int | None = None,
    now: datetime | None = None,
) -> list[DealAtRisk]:
    """Active deals under the health threshold, worst health first."""
    if threshold is None:
        threshold = get_settings().AT_RISK_HEALTH_THRESHOLD
    if now is None:
        now = datetime.now(timezone.utc)

    at_risk = [
        DealAtRisk(
            deal_id=d.id,
            deal_name=d.name,
            account_name=d.account_name or UNKNOWN_ACCOUNT,
            value=d.value,
            health_score=d.health_score,
            stage=d.stage,
            top_risk=top_risk_description(d.risk_factors),
            days_in_stage=d.days_in_stage,
            days_until_close=_days_until(d.close_date, now),
        )
        for d in active_deals(deals)
        if d.health_score < threshold
    ]
    at_risk.sort(key=lambda item: item.health_score)
    return at_risk


def forecast(deals: Iterable[Deal], user: User) -> ForecastData:
    """Cumulative commit / best-case / pipeline bands plus the quota target."""
    active = active_deals(deals)
    negotiation = _stage_value(active, DealStage.NEGOTIATION)
    proposal = _stage_value(active, DealStage.PROPOSAL)
    other = sum(
        d.value
        for d in active
        if d.stage not in (DealStage.NEGOTIATION, DealStage.PROPOSAL)
    )

    commit = user.closed_won_ytd + negotiation
    best_case = commit + proposal
    return ForecastData(
        commit=commit,
        best_case=best_case,
        pipeline=best_case + other,
        target=user.quota,
    )


class PortfolioAggregator:
    """Build a DashboardSnapshot from a complete set of a user's deals.

    Args:
        at_risk_threshold: Health score below which a deal is at risk.
            Defaults to the configured AT_RISK_HEALTH_THRESHOLD.
    """

    def __init__(self, *, at_risk_threshold: int | None = None) -> None:
        if at_risk_threshold is None:
            at_risk_threshold = get_settings().AT_RISK_HEALTH_THRESHOLD
        self._at_risk_threshold = at_risk_threshold

    def aggregate(
        self,
        deals: Sequence[Deal],
        user: User,
        *,
        now: datetime | None = None,
        missing_deal_ids: Sequence[str] = (),
    ) -> DashboardSnapshot:
        """Aggregate deals into the dashboard snapshot.

        Args:
            deals: Every deal owned by the user that loaded completely.
            user: Deal owner carrying quota and closed-won figures.
            now: Reference time for close-date countdowns.
            missing_deal_ids: Deals that could not be loaded; when present
                the snapshot is flagged as partial.

        Returns:
            DashboardSnapshot over the active subset of ``deals``.
        """
        if now is None:
            now = datetime.now(timezone.utc)
        active = active_deals(deals)

        snapshot = DashboardSnapshot(
            user_id=user.id,
            quota_attainment=quota_attainment(active, user),
            pipeline_by_stage=pipeline_by_stage(active),
            deals_at_risk=deals_at_risk(
                active, threshold=self._at_risk_threshold, now=now
            ),
            today_actions=today_actions(active),
            forecast=forecast(active, user),
            is_partial=bool(missing_deal_ids),
            missing_deal_ids=list(missing_deal_ids),
            generated_at=now,
        )

        logger.debug(
            "portfolio_aggregated",
            user_id=user.id,
            deal_count=len(deals),
            active_count=len(active),
            at_risk_count=len(snapshot.deals_at_risk),
            is_partial=snapshot.is_partial,
        )
        return snapshot


__all__ = [
    "PortfolioAggregator",
    "active_deals",
    "weighted_pipeline",
    "quota_attainment",
    "pipeline_by_stage",
    "deals_at_risk",
    "forecast",
]
