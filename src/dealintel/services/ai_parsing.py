"""Parsing of AI model responses into scoring records.

Model output is untrusted text. Both parsers accept bare JSON, JSON inside
markdown code fences, or JSON embedded in surrounding prose. Anything that
cannot be parsed, or that parses to values outside the domain's ranges,
degrades to a deterministic fallback with a warning. Neither parser raises.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

from src.dealintel.core.numbers import round_half_up
from src.dealintel.domain.schemas import Deal, DealEnrichment, LeadScore
from src.dealintel.lifecycle.deals import ACTIVE_STAGES
from src.dealintel.scoring.meddic import category_score, weakest_categories
from src.dealintel.scoring.risk import top_risk

logger = structlog.get_logger(__name__)

MAX_INSIGHTS = 5

_STAGE_LABELS = dict(ACTIVE_STAGES)


def _extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first JSON object in ``text``, or None."""
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned.strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if not match:
            return None
        try:
            parsed = json.loads(match.group())
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def parse_lead_score(raw: str, fallback: LeadScore) -> LeadScore:
    """Parse a ``{"score": int, "factors": [str]}`` response.

    Args:
        raw: Model response text.
        fallback: Score to return when the response is unusable, usually
            the deterministic LeadSignalScorer result for the same lead.

    Returns:
        LeadScore from the response, or ``fallback``.
    """
    data = _extract_json_object(raw or "")
    if data is None:
        logger.warning("ai_lead_score_unparseable", lead_id=fallback.lead_id)
        return fallback

    score = data.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0 <= score <= 100:
        logger.warning(
            "ai_lead_score_out_of_range", lead_id=fallback.lead_id, score=score
        )
        return fallback

    factors = data.get("factors")
    if not isinstance(factors, list):
        factors = []

    return LeadScore(
        lead_id=fallback.lead_id,
        score=round_half_up(score),
        factors=[str(f) for f in factors if f][:3],
    )


def fallback_enrichment(deal: Deal) -> DealEnrichment:
    """Placeholder overview assembled from the deal's own fields."""
    account = deal.account_name or "the account"
    stage = _STAGE_LABELS.get(deal.stage, deal.stage.value.replace("_", " ").title())
    summary = (
        f"{deal.name} with {account} is in {stage} at ${deal.value:,.0f} "
        f"with a health score of {deal.health_score}."
    )

    insights: list[str] = []
    for category in weakest_categories(deal.meddic):
        label = category.replace("_", " ")
        insights.append(
            f"Strengthen {label} (MEDDIC {category_score(deal.meddic, category)}/10)"
        )
    risk = top_risk(deal.risk_factors)
    if risk is not None:
        insights.append(f"Address risk: {risk.description}")

    return DealEnrichment(summary=summary, insights=insights, is_fallback=True)


def parse_deal_enrichment(raw: str, deal: Deal) -> DealEnrichment:
    """Parse a ``{"summary": str, "insights": [str]}`` response for a deal.

    Falls back to ``fallback_enrichment(deal)`` when the response has no
    JSON object or no non-empty summary.
    """
    data = _extract_json_object(raw or "")
    summary = data.get("summary") if data else None
    if not isinstance(summary, str) or not summary.strip():
        logger.warning("ai_deal_enrichment_unparseable", deal_id=deal.id)
        return fallback_enrichment(deal)

    insights = data.get("insights")
    if not isinstance(insights, list):
        insights = []

    return DealEnrichment(
        summary=summary.strip(),
        insights=[str(i) for i in insights if i][:MAX_INSIGHTS],
    )


__all__ = [
    "MAX_INSIGHTS",
    "parse_lead_score",
    "fallback_enrichment",
    "parse_deal_enrichment",
]
