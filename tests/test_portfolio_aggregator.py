"""Tests for the portfolio roll-up behind the AE dashboard.

Covers:
    - Worked forecast example (commit 300000, best case 350000, pipeline 350000)
    - Forecast bands stay ordered; negative deal values are rejected
    - Weighted pipeline, projected, attainment, gap, pipeline coverage
    - Closed deals excluded from every figure
    - All five open stages always listed, in pipeline order
    - Deals at risk: threshold, ordering, sentinel risk, close countdown
    - Empty deal set and zero quota degrade to zeros
    - Partial snapshot flagging
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from src.dealintel.aggregation.portfolio import (
    PortfolioAggregator,
    deals_at_risk,
    forecast,
    pipeline_by_stage,
    quota_attainment,
    weighted_pipeline,
)
from src.dealintel.domain.schemas import (
    Deal,
    DealStage,
    NextBestAction,
    Priority,
    RiskFactor,
    Severity,
    User,
)

NOW = datetime(2025, 6, 18, 15, 0, tzinfo=timezone.utc)


# -- Helpers ------------------------------------------------------------------


def _make_deal(
    deal_id: str,
    *,
    value: float,
    probability: float,
    stage: DealStage,
    health: int = 80,
    close_date: datetime | None = None,
    risks: list[RiskFactor] | None = None,
    actions: list[NextBestAction] | None = None,
) -> Deal:
    return Deal(
        id=deal_id,
        account_id=f"acc-{deal_id}",
        account_name=f"Account {deal_id}",
        name=f"Deal {deal_id}",
        value=value,
        probability=probability,
        stage=stage,
        health_score=health,
        days_in_stage=12,
        close_date=close_date,
        risk_factors=risks or [],
        next_best_actions=actions or [],
        owner_id="user-1",
    )


def _user(quota: float = 1_000_000, closed_won: float = 200_000) -> User:
    return User(id="user-1", name="Sam Seller", quota=quota, closed_won_ytd=closed_won)


@pytest.fixture
def example_deals() -> list[Deal]:
    return [
        _make_deal("d1", value=100_000, probability=80, stage=DealStage.NEGOTIATION),
        _make_deal("d2", value=50_000, probability=60, stage=DealStage.PROPOSAL),
    ]


# -- Test Class: Quota and Forecast ------------------------------------------


class TestQuotaAndForecast:
    def test_worked_example_forecast(self, example_deals: list[Deal]) -> None:
        result = forecast(example_deals, _user())
        assert result.commit == 300_000
        assert result.best_case == 350_000
        assert result.pipeline == 350_000
        assert result.target == 1_000_000

    def test_weighted_pipeline(self, example_deals: list[Deal]) -> None:
        assert weighted_pipeline(example_deals) == pytest.approx(110_000)

    def test_quota_attainment(self, example_deals: list[Deal]) -> None:
        result = quota_attainment(example_deals, _user())
        assert result.weighted_pipeline == 110_000
        assert result.projected == 310_000
        assert result.gap == 800_000
        assert result.attainment_percent == 20
        # 150000 / 800000 = 18.75% -> 0.19
        assert result.pipeline_coverage == 0.19

    def test_closed_deals_excluded(self, example_deals: list[Deal]) -> None:
        deals = example_deals + [
            _make_deal("won", value=999_000, probability=100, stage=DealStage.CLOSED_WON),
            _make_deal("lost", value=500_000, probability=0, stage=DealStage.CLOSED_LOST),
        ]
        assert quota_attainment(deals, _user()).weighted_pipeline == 110_000
        assert forecast(deals, _user()).pipeline == 350_000

    def test_other_stages_only_in_pipeline_band(self, example_deals: list[Deal]) -> None:
        deals = example_deals + [
            _make_deal("d3", value=25_000, probability=10, stage=DealStage.DISCOVERY),
        ]
        result = forecast(deals, _user())
        assert result.best_case == 350_000
        assert result.pipeline == 375_000
        assert result.commit <= result.best_case <= result.pipeline

    def test_bands_ordered_across_every_open_stage(self) -> None:
        deals = [
            _make_deal(f"d-{stage.value}", value=value, probability=50, stage=stage)
            for stage, value in [
                (DealStage.DISCOVERY, 10_000),
                (DealStage.QUALIFICATION, 0),
                (DealStage.TECHNICAL_EVALUATION, 40_000),
                (DealStage.PROPOSAL, 0),
                (DealStage.NEGOTIATION, 75_000),
            ]
        ]
        result = forecast(deals, _user())
        assert (result.commit, result.best_case, result.pipeline) == (
            275_000,
            275_000,
            325_000,
        )
        assert result.commit <= result.best_case <= result.pipeline

    def test_negative_deal_value_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _make_deal("d2", value=-50_000, probability=60, stage=DealStage.PROPOSAL)

    def test_empty_deal_set(self) -> None:
        user = _user()
        attainment = quota_attainment([], user)
        bands = forecast([], user)
        assert attainment.weighted_pipeline == 0
        assert attainment.projected == 200_000
        assert attainment.pipeline_coverage == 0.0
        assert bands.commit == bands.best_case == bands.pipeline == 200_000

    def test_zero_quota_gives_zero_attainment(self, example_deals: list[Deal]) -> None:
        result = quota_attainment(example_deals, _user(quota=0, closed_won=0))
        assert result.attainment_percent == 0
        assert result.pipeline_coverage == 0.0

    def test_quota_already_met_has_no_coverage(self, example_deals: list[Deal]) -> None:
        result = quota_attainment(example_deals, _user(quota=100_000, closed_won=150_000))
        assert result.gap == -50_000
        assert result.attainment_percent == 150
        assert result.pipeline_coverage == 0.0

    def test_user_defaults_apply_when_missing(self) -> None:
        user = User(id="user-1")
        assert user.quota == 1_500_000
        assert user.closed_won_ytd == 680_000


# -- Test Class: Pipeline by Stage -------------------------------------------


class TestPipelineByStage:
    def test_all_open_stages_listed_in_order(self, example_deals: list[Deal]) -> None:
        summary = pipeline_by_stage(example_deals)
        assert [s.stage for s in summary] == [
            DealStage.DISCOVERY,
            DealStage.QUALIFICATION,
            DealStage.TECHNICAL_EVALUATION,
            DealStage.PROPOSAL,
            DealStage.NEGOTIATION,
        ]
        assert summary[2].label == "Technical Evaluation"
        assert (summary[3].count, summary[3].value) == (1, 50_000)
        assert (summary[0].count, summary[0].value) == (0, 0)

    def test_empty_input_still_lists_stages(self) -> None:
        assert len(pipeline_by_stage([])) == 5


# -- Test Class: Deals at Risk -----------------------------------------------


class TestDealsAtRisk:
    def test_below_threshold_worst_first(self) -> None:
        deals = [
            _make_deal("d1", value=1, probability=10, stage=DealStage.DISCOVERY, health=55),
            _make_deal("d2", value=1, probability=10, stage=DealStage.DISCOVERY, health=60),
            _make_deal("d3", value=1, probability=10, stage=DealStage.DISCOVERY, health=30),
            _make_deal("d4", value=1, probability=0, stage=DealStage.CLOSED_LOST, health=5),
        ]
        result = deals_at_risk(deals, threshold=60, now=NOW)
        assert [d.deal_id for d in result] == ["d3", "d1"]

    def test_top_risk_and_sentinel(self) -> None:
        risky = _make_deal(
            "d1",
            value=1,
            probability=10,
            stage=DealStage.PROPOSAL,
            health=40,
            risks=[
                RiskFactor(id="r1", deal_id="d1", severity=Severity.LOW, description="Slow legal"),
                RiskFactor(id="r2", deal_id="d1", severity=Severity.HIGH, description="No budget"),
            ],
        )
        quiet = _make_deal("d2", value=1, probability=10, stage=DealStage.PROPOSAL, health=50)
        result = deals_at_risk([risky, quiet], threshold=60, now=NOW)
        assert result[0].top_risk == "No budget"
        assert result[1].top_risk == "No specific risk identified"

    def test_days_until_close_rounds_up(self) -> None:
        deal = _make_deal(
            "d1",
            value=1,
            probability=10,
            stage=DealStage.PROPOSAL,
            health=10,
            close_date=NOW + timedelta(days=10, hours=1),
        )
        [item] = deals_at_risk([deal], threshold=60, now=NOW)
        assert item.days_until_close == 11
        assert item.days_in_stage == 12

    def test_past_close_date_is_negative(self) -> None:
        deal = _make_deal(
            "d1",
            value=1,
            probability=10,
            stage=DealStage.PROPOSAL,
            health=10,
            close_date=NOW - timedelta(days=3),
        )
        [item] = deals_at_risk([deal], threshold=60, now=NOW)
        assert item.days_until_close == -3

    def test_threshold_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AT_RISK_HEALTH_THRESHOLD", "40")
        deals = [
            _make_deal("d1", value=1, probability=10, stage=DealStage.DISCOVERY, health=45),
            _make_deal("d2", value=1, probability=10, stage=DealStage.DISCOVERY, health=35),
        ]
        assert [d.deal_id for d in deals_at_risk(deals, now=NOW)] == ["d2"]


# -- Test Class: PortfolioAggregator -----------------------------------------


class TestPortfolioAggregator:
    def test_snapshot_assembles_all_views(self, example_deals: list[Deal]) -> None:
        example_deals[0] = example_deals[0].model_copy(
            update={
                "health_score": 45,
                "next_best_actions": [
                    NextBestAction(id="a1", deal_id="d1", priority=Priority.CRITICAL),
                    NextBestAction(id="a2", deal_id="d1", priority=Priority.LOW),
                ],
            }
        )
        snapshot = PortfolioAggregator(at_risk_threshold=60).aggregate(
            example_deals, _user(), now=NOW
        )
        assert snapshot.user_id == "user-1"
        assert snapshot.quota_attainment.weighted_pipeline == 110_000
        assert len(snapshot.pipeline_by_stage) == 5
        assert [d.deal_id for d in snapshot.deals_at_risk] == ["d1"]
        assert [t.action.id for t in snapshot.today_actions] == ["a1"]
        assert snapshot.forecast.commit == 300_000
        assert snapshot.is_partial is False
        assert snapshot.generated_at == NOW

    def test_missing_deals_flag_partial(self, example_deals: list[Deal]) -> None:
        snapshot = PortfolioAggregator().aggregate(
            example_deals, _user(), now=NOW, missing_deal_ids=["d9"]
        )
        assert snapshot.is_partial is True
        assert snapshot.missing_deal_ids == ["d9"]
