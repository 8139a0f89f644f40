"""Async tests for DashboardService over the in-memory repository.

Covers:
    - Snapshot built from the owner's deals with sub-collections loaded
    - Unknown owner falls back to placeholder quota figures
    - Configured DEFAULT_USER_ID used when no owner is given
    - A deal whose risks fail to load is excluded and flagged partial
    - The owner id is bound to the log context while the dashboard builds
    - Lead metrics and lead scoring pass-throughs
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import structlog

from src.dealintel.domain.schemas import (
    BuyingSignal,
    Deal,
    DealStage,
    InboundLead,
    Lead,
    NextBestAction,
    Priority,
    RiskFactor,
    Severity,
    User,
)
from src.dealintel.repository.memory import InMemoryIntelligenceRepository
from src.dealintel.services.dashboard import DashboardService

NOW = datetime(2025, 6, 18, 15, 0, tzinfo=timezone.utc)


# -- Helpers ------------------------------------------------------------------


def _make_deal(
    deal_id: str,
    *,
    value: float,
    stage: DealStage,
    probability: float,
    health: int = 80,
    owner_id: str = "user-1",
) -> Deal:
    return Deal(
        id=deal_id,
        account_id=f"acc-{deal_id}",
        account_name=f"Account {deal_id}",
        name=f"Deal {deal_id}",
        value=value,
        stage=stage,
        probability=probability,
        health_score=health,
        owner_id=owner_id,
        risk_factors=[
            RiskFactor(
                id=f"r-{deal_id}",
                deal_id=deal_id,
                severity=Severity.HIGH,
                description=f"Risk on {deal_id}",
            )
        ],
        next_best_actions=[
            NextBestAction(id=f"a-{deal_id}", deal_id=deal_id, priority=Priority.HIGH)
        ],
    )


class FailingRiskRepository(InMemoryIntelligenceRepository):
    """In-memory repository whose risk lookup fails for chosen deals."""

    def __init__(self, failing: set[str], **kwargs) -> None:
        super().__init__(**kwargs)
        self._failing = failing

    async def list_risk_factors(self, deal_id: str) -> list[RiskFactor]:
        if deal_id in self._failing:
            raise ConnectionError(f"risk store unavailable for {deal_id}")
        return await super().list_risk_factors(deal_id)


class ContextRecordingRepository(InMemoryIntelligenceRepository):
    """In-memory repository that records the log context seen by each lookup."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.seen: list[dict] = []

    async def list_risk_factors(self, deal_id: str) -> list[RiskFactor]:
        self.seen.append(structlog.contextvars.get_contextvars())
        return await super().list_risk_factors(deal_id)


@pytest.fixture
def deals() -> list[Deal]:
    return [
        _make_deal("d1", value=100_000, stage=DealStage.NEGOTIATION, probability=80, health=40),
        _make_deal("d2", value=50_000, stage=DealStage.PROPOSAL, probability=60),
        _make_deal("d3", value=70_000, stage=DealStage.DISCOVERY, probability=10, owner_id="user-2"),
    ]


@pytest.fixture
def user() -> User:
    return User(id="user-1", quota=1_000_000, closed_won_ytd=200_000)


# -- Test Class: get_dashboard -----------------------------------------------


class TestGetDashboard:
    @pytest.mark.asyncio
    async def test_builds_complete_snapshot(self, deals: list[Deal], user: User) -> None:
        repo = InMemoryIntelligenceRepository(deals=deals, users=[user])
        snapshot = await DashboardService(repo).get_dashboard("user-1", now=NOW)

        assert snapshot.is_partial is False
        assert snapshot.quota_attainment.weighted_pipeline == 110_000
        assert snapshot.forecast.commit == 300_000
        assert [d.deal_id for d in snapshot.deals_at_risk] == ["d1"]
        assert snapshot.deals_at_risk[0].top_risk == "Risk on d1"
        assert [t.action.id for t in snapshot.today_actions] == ["a-d1", "a-d2"]

    @pytest.mark.asyncio
    async def test_unknown_user_gets_placeholder_quota(self, deals: list[Deal]) -> None:
        repo = InMemoryIntelligenceRepository(deals=deals)
        snapshot = await DashboardService(repo).get_dashboard("user-1", now=NOW)

        assert snapshot.quota_attainment.quota == 1_500_000
        assert snapshot.quota_attainment.closed_won == 680_000

    @pytest.mark.asyncio
    async def test_default_user_from_settings(
        self, deals: list[Deal], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DEFAULT_USER_ID", "user-2")
        repo = InMemoryIntelligenceRepository(deals=deals)
        snapshot = await DashboardService(repo).get_dashboard(now=NOW)

        assert snapshot.user_id == "user-2"
        assert snapshot.pipeline_by_stage[0].value == 70_000

    @pytest.mark.asyncio
    async def test_failed_deal_load_marks_partial(self, deals: list[Deal], user: User) -> None:
        repo = FailingRiskRepository({"d1"}, deals=deals, users=[user])
        snapshot = await DashboardService(repo).get_dashboard("user-1", now=NOW)

        assert snapshot.is_partial is True
        assert snapshot.missing_deal_ids == ["d1"]
        # d1 is excluded from every figure rather than counted without risks
        assert snapshot.quota_attainment.weighted_pipeline == 30_000
        assert snapshot.deals_at_risk == []
        assert [t.deal_id for t in snapshot.today_actions] == ["d2"]

    @pytest.mark.asyncio
    async def test_user_id_bound_to_log_context(self, deals: list[Deal], user: User) -> None:
        repo = ContextRecordingRepository(deals=deals, users=[user])
        await DashboardService(repo).get_dashboard("user-1", now=NOW)

        assert [ctx.get("user_id") for ctx in repo.seen] == ["user-1", "user-1"]
        assert "user_id" not in structlog.contextvars.get_contextvars()


# -- Test Class: Leads -------------------------------------------------------


class TestLeadViews:
    @pytest.mark.asyncio
    async def test_get_lead_metrics(self) -> None:
        repo = InMemoryIntelligenceRepository(
            inbound_leads=[
                InboundLead(id="i1", received_at=NOW, auto_response_sent=True, response_time_ms=2_000),
                InboundLead(id="i2", received_at=NOW, converted_deal_id="d9"),
            ]
        )
        metrics = await DashboardService(repo).get_lead_metrics(now=NOW)

        assert metrics.total_leads == 2
        assert metrics.auto_response_rate == 0.5
        assert metrics.conversion_rate == 0.5
        assert metrics.speed_to_lead_distribution.under_5s == 1

    @pytest.mark.asyncio
    async def test_score_leads_sorted_high_first(self) -> None:
        repo = InMemoryIntelligenceRepository(
            leads=[
                Lead(id="cold", title="Analyst"),
                Lead(
                    id="hot",
                    title="CTO",
                    buying_signals=[BuyingSignal(type="funding_round", impact_score=20)],
                ),
            ]
        )
        scores = await DashboardService(repo).score_leads(now=NOW)

        assert [s.lead_id for s in scores] == ["hot", "cold"]
        assert scores[0].score == 85
        assert scores[1].score == 50
