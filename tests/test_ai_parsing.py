"""Tests for parsing AI model responses with deterministic fallbacks."""

from __future__ import annotations

from src.dealintel.domain.schemas import (
    Deal,
    DealStage,
    LeadScore,
    MEDDICCategoryScore,
    MEDDICScore,
    RiskFactor,
    Severity,
)
from src.dealintel.services.ai_parsing import (
    fallback_enrichment,
    parse_deal_enrichment,
    parse_lead_score,
)

FALLBACK = LeadScore(lead_id="lead-1", score=62, factors=["VP title: VP Ops"])


def _deal() -> Deal:
    return Deal(
        id="deal-1",
        account_id="acc-1",
        account_name="Acme Robotics",
        name="Line 4 automation",
        value=120_000,
        stage=DealStage.TECHNICAL_EVALUATION,
        health_score=58,
        meddic=MEDDICScore(
            metrics=MEDDICCategoryScore(score=7),
            economic_buyer=MEDDICCategoryScore(score=2),
            decision_criteria=MEDDICCategoryScore(score=6),
            decision_process=MEDDICCategoryScore(score=5),
            identify_pain=MEDDICCategoryScore(score=8),
            champion=MEDDICCategoryScore(score=3),
        ),
        risk_factors=[
            RiskFactor(id="r1", deal_id="deal-1", severity=Severity.HIGH, description="No budget owner"),
        ],
    )


class TestParseLeadScore:
    def test_plain_json(self) -> None:
        result = parse_lead_score('{"score": 81, "factors": ["a", "b"]}', FALLBACK)
        assert result.score == 81
        assert result.factors == ["a", "b"]
        assert result.lead_id == "lead-1"

    def test_fenced_json(self) -> None:
        raw = '```json\n{"score": 44, "factors": []}\n```'
        assert parse_lead_score(raw, FALLBACK).score == 44

    def test_json_inside_prose(self) -> None:
        raw = 'Here is my assessment: {"score": 70.5, "factors": ["x", "y", "z", "w"]} Thanks!'
        result = parse_lead_score(raw, FALLBACK)
        assert result.score == 71
        assert result.factors == ["x", "y", "z"]

    def test_out_of_range_falls_back(self) -> None:
        assert parse_lead_score('{"score": 140}', FALLBACK) is FALLBACK
        assert parse_lead_score('{"score": -3}', FALLBACK) is FALLBACK

    def test_non_numeric_score_falls_back(self) -> None:
        assert parse_lead_score('{"score": "high"}', FALLBACK) is FALLBACK
        assert parse_lead_score('{"score": true}', FALLBACK) is FALLBACK

    def test_garbage_falls_back(self) -> None:
        assert parse_lead_score("I cannot score this lead.", FALLBACK) is FALLBACK
        assert parse_lead_score("", FALLBACK) is FALLBACK
        assert parse_lead_score("[1, 2, 3]", FALLBACK) is FALLBACK


class TestParseDealEnrichment:
    def test_valid_response(self) -> None:
        raw = '{"summary": "  Strong technical fit.  ", "insights": ["Engage CFO", ""]}'
        result = parse_deal_enrichment(raw, _deal())
        assert result.summary == "Strong technical fit."
        assert result.insights == ["Engage CFO"]
        assert result.is_fallback is False

    def test_missing_summary_falls_back(self) -> None:
        result = parse_deal_enrichment('{"insights": ["x"]}', _deal())
        assert result.is_fallback is True

    def test_unparseable_falls_back(self) -> None:
        result = parse_deal_enrichment("not json at all", _deal())
        assert result == fallback_enrichment(_deal())

    def test_fallback_content(self) -> None:
        result = fallback_enrichment(_deal())
        assert result.summary == (
            "Line 4 automation with Acme Robotics is in Technical Evaluation "
            "at $120,000 with a health score of 58."
        )
        assert result.insights == [
            "Strengthen economic buyer (MEDDIC 2/10)",
            "Strengthen champion (MEDDIC 3/10)",
            "Address risk: No budget owner",
        ]
