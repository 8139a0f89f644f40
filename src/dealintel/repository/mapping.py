"""Row-to-record mappers for the SQL repository.

This is the single boundary where stored values are checked against the
domain's allowed values. An unknown stage or lead status, a negative deal
value, or a MEDDIC sub-score outside [0, 10] raises InvalidDomainValueError
here instead of leaking into the aggregates. Malformed JSON columns are
tolerated: they log a warning and fall back to an empty value.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from src.dealintel.domain.errors import InvalidDomainValueError
from src.dealintel.domain.schemas import (
    BuyingSignal,
    CompanyIntel,
    Competitor,
    Deal,
    InboundLead,
    Lead,
    MEDDICScore,
    NextBestAction,
    RiskFactor,
    StageHistoryEntry,
    User,
)
from src.dealintel.lifecycle.deals import parse_stage
from src.dealintel.lifecycle.leads import parse_lead_status
from src.dealintel.repository.models import (
    DealModel,
    InboundLeadModel,
    LeadModel,
    NextBestActionModel,
    RiskFactorModel,
    UserModel,
)
from src.dealintel.scoring.meddic import overall_score

logger = structlog.get_logger(__name__)


def parse_json_field(value: Any, fallback: Any, *, field: str = "") -> Any:
    """Decode a JSON column that may hold a string or an already-decoded value.

    Returns ``fallback`` for None and for strings that are not valid JSON.
    """
    if value is None:
        return fallback
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning("json_field_malformed", field=field, preview=value[:80])
        return fallback


def _model_to_meddic(raw: Any) -> MEDDICScore:
    data = parse_json_field(raw, {}, field="deal.meddic")
    if not isinstance(data, dict):
        data = {}
    meddic = MEDDICScore.model_validate(data)
    # Surfaces out-of-range sub-scores at load time.
    overall_score(meddic)
    return meddic


def _model_to_stage_history(raw: Any) -> list[StageHistoryEntry]:
    entries = parse_json_field(raw, [], field="deal.stage_history")
    return [
        StageHistoryEntry(
            stage=parse_stage(entry.get("stage")),
            entered_at=entry["entered_at"],
            exited_at=entry.get("exited_at"),
        )
        for entry in entries
    ]


def model_to_deal(model: DealModel, account_name: str | None = None) -> Deal:
    """Convert DealModel to a Deal without risks or actions attached.

    Raises:
        InvalidDomainValueError: On a non-canonical stage, a negative
            value, or an out-of-range MEDDIC sub-score.
    """
    value = model.value or 0.0
    if value < 0:
        raise InvalidDomainValueError("deal.value", model.value, ">= 0")
    competitors = parse_json_field(model.competitors, [], field="deal.competitors")
    return Deal(
        id=model.id,
        account_id=model.account_id,
        account_name=account_name,
        name=model.name,
        value=value,
        stage=parse_stage(model.stage),
        probability=model.probability,
        health_score=model.health_score,
        days_in_stage=model.days_in_stage or 0,
        close_date=model.close_date,
        meddic=_model_to_meddic(model.meddic),
        competitors=[Competitor.model_validate(c) for c in competitors],
        stage_history=_model_to_stage_history(model.stage_history),
        owner_id=model.owner_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_risk_factor(model: RiskFactorModel) -> RiskFactor:
    """Convert RiskFactorModel to RiskFactor."""
    return RiskFactor(
        id=model.id,
        deal_id=model.deal_id,
        severity=model.severity,
        category=model.category,
        description=model.description,
        mitigation=model.mitigation,
        is_resolved=model.is_resolved,
        detected_at=model.detected_at,
    )


def model_to_next_best_action(model: NextBestActionModel) -> NextBestAction:
    """Convert NextBestActionModel to NextBestAction."""
    return NextBestAction(
        id=model.id,
        deal_id=model.deal_id,
        priority=model.priority,
        type=model.type,
        description=model.description,
        reasoning=model.reasoning,
        is_completed=model.is_completed,
        due_date=model.due_date,
        completed_at=model.completed_at,
    )


def model_to_user(model: UserModel) -> User:
    """Convert UserModel to User.

    Missing quota figures take the configured placeholders; a stored zero
    is kept as zero.
    """
    data: dict[str, Any] = {"id": model.id, "name": model.name, "email": model.email}
    if model.quota is not None:
        data["quota"] = model.quota
    if model.closed_won_ytd is not None:
        data["closed_won_ytd"] = model.closed_won_ytd
    return User(**data)


def model_to_lead(model: LeadModel) -> Lead:
    """Convert LeadModel to Lead."""
    intel = parse_json_field(model.company_intel, {}, field="lead.company_intel")
    signals = parse_json_field(model.buying_signals, [], field="lead.buying_signals")
    factors = parse_json_field(model.score_factors, [], field="lead.score_factors")
    return Lead(
        id=model.id,
        display_name=model.display_name,
        email=model.email,
        company=model.company,
        title=model.title,
        industry=model.industry,
        ai_score=model.ai_score or 0,
        score_factors=list(factors)[:3],
        company_intel=CompanyIntel.model_validate(intel),
        buying_signals=[BuyingSignal.model_validate(s) for s in signals],
        status=parse_lead_status(model.status),
        contact_attempts=model.contact_attempts or 0,
        last_activity=model.last_activity,
        last_contacted_at=model.last_contacted_at,
        response_time_ms=model.response_time_ms,
        last_scored_at=model.last_scored_at,
    )


def model_to_inbound_lead(model: InboundLeadModel) -> InboundLead:
    """Convert InboundLeadModel to InboundLead."""
    return InboundLead(
        id=model.id,
        source=model.source,
        first_name=model.first_name,
        last_name=model.last_name,
        email=model.email,
        company=model.company,
        title=model.title,
        employee_count=model.employee_count,
        region=model.region,
        status=model.status,
        ai_score=model.ai_score,
        ai_qualified=bool(model.ai_qualified),
        auto_response_sent=bool(model.auto_response_sent),
        response_time_ms=model.response_time_ms,
        received_at=model.received_at,
        qualified_at=model.qualified_at,
        converted_at=model.converted_at,
        converted_deal_id=model.converted_deal_id,
    )


__all__ = [
    "parse_json_field",
    "model_to_deal",
    "model_to_risk_factor",
    "model_to_next_best_action",
    "model_to_user",
    "model_to_lead",
    "model_to_inbound_lead",
]
