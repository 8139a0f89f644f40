"""Deal lifecycle rules: stage transitions, action completion, risk resolution.

Stage changes re-derive ``probability`` from a fixed lookup table, close the
open stage-history entry, append a new one, and reset ``days_in_stage``.
Terminal stages (CLOSED_WON, CLOSED_LOST) never transition. All functions
return updated copies; the input records are left untouched.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from src.dealintel.domain.errors import InvalidDomainValueError
from src.dealintel.domain.schemas import (
    Deal,
    DealStage,
    NextBestAction,
    RiskFactor,
    StageHistoryEntry,
)

logger = structlog.get_logger(__name__)

# ── Stage Tables ────────────────────────────────────────────────────────────

STAGE_PROBABILITY: dict[DealStage, int] = {
    DealStage.DISCOVERY: 10,
    DealStage.QUALIFICATION: 25,
    DealStage.TECHNICAL_EVALUATION: 40,
    DealStage.PROPOSAL: 60,
    DealStage.NEGOTIATION: 80,
    DealStage.CLOSED_WON: 100,
    DealStage.CLOSED_LOST: 0,
}

# Open pipeline stages in canonical order, with dashboard labels.
ACTIVE_STAGES: list[tuple[DealStage, str]] = [
    (DealStage.DISCOVERY, "Discovery"),
    (DealStage.QUALIFICATION, "Qualification"),
    (DealStage.TECHNICAL_EVALUATION, "Technical Evaluation"),
    (DealStage.PROPOSAL, "Proposal"),
    (DealStage.NEGOTIATION, "Negotiation"),
]


class InvalidStageTransitionError(ValueError):
    """Raised when a deal stage transition violates the transition rules."""

    def __init__(self, from_stage: DealStage, to_stage: DealStage) -> None:
        self.from_stage = from_stage
        self.to_stage = to_stage
        if from_stage.is_closed:
            reason = f"{from_stage.value} is a terminal stage"
        else:
            reason = "deal is already in that stage"
        super().__init__(
            f"Invalid stage transition: {from_stage.value} -> {to_stage.value} ({reason})"
        )


def parse_stage(raw: Any) -> DealStage:
    """Convert a raw stage value into a DealStage.

    Raises:
        InvalidDomainValueError: If the value is not a canonical stage.
    """
    try:
        return DealStage(raw)
    except ValueError:
        raise InvalidDomainValueError(
            "deal.stage", raw, ", ".join(s.value for s in DealStage)
        ) from None


def validate_stage_transition(from_stage: DealStage, to_stage: DealStage) -> None:
    """Validate that a deal stage transition is allowed.

    Any open stage may move to any other stage (deals can slip backwards);
    terminal stages are final.

    Raises:
        InvalidStageTransitionError: If the transition is not allowed.
    """
    if from_stage.is_closed or from_stage == to_stage:
        raise InvalidStageTransitionError(from_stage, to_stage)


def transition_deal_stage(
    deal: Deal,
    stage: DealStage | str,
    now: datetime | None = None,
) -> Deal:
    """Move a deal to a new stage.

    Args:
        deal: Deal to move.
        stage: Target stage (enum or raw value).
        now: Transition time; defaults to the current UTC time.

    Returns:
        Updated copy of the deal.

    Raises:
        InvalidDomainValueError: If ``stage`` is not a canonical stage.
        InvalidStageTransitionError: If the transition is not allowed.
    """
    target = parse_stage(stage)
    validate_stage_transition(deal.stage, target)
    if now is None:
        now = datetime.now(timezone.utc)

    history = [entry.model_copy() for entry in deal.stage_history]
    if history and history[-1].exited_at is None:
        history[-1] = history[-1].model_copy(update={"exited_at": now})
    history.append(StageHistoryEntry(stage=target, entered_at=now))

    logger.info(
        "deal_stage_transition",
        deal_id=deal.id,
        from_stage=deal.stage.value,
        to_stage=target.value,
    )

    return deal.model_copy(
        update={
            "stage": target,
            "probability": float(STAGE_PROBABILITY[target]),
            "days_in_stage": 0,
            "stage_history": history,
            "updated_at": now,
        }
    )


def complete_action(action: NextBestAction, now: datetime | None = None) -> NextBestAction:
    """Mark an action complete. Completing twice keeps the first timestamp."""
    if action.is_completed:
        return action
    if now is None:
        now = datetime.now(timezone.utc)
    return action.model_copy(update={"is_completed": True, "completed_at": now})


def complete_deal_action(
    deal: Deal, action_id: str, now: datetime | None = None
) -> Deal:
    """Complete one of a deal's actions by ID.

    Raises:
        KeyError: If the deal has no action with that ID.
    """
    if not any(a.id == action_id for a in deal.next_best_actions):
        raise KeyError(f"Action {action_id} not found on deal {deal.id}")
    if now is None:
        now = datetime.now(timezone.utc)
    actions = [
        complete_action(a, now) if a.id == action_id else a
        for a in deal.next_best_actions
    ]
    return deal.model_copy(update={"next_best_actions": actions, "updated_at": now})


def resolve_risk(risk: RiskFactor) -> RiskFactor:
    """Flip a risk to resolved. Risks are never deleted."""
    if risk.is_resolved:
        return risk
    return risk.model_copy(update={"is_resolved": True})


__all__ = [
    "STAGE_PROBABILITY",
    "ACTIVE_STAGES",
    "InvalidStageTransitionError",
    "parse_stage",
    "validate_stage_transition",
    "transition_deal_stage",
    "complete_action",
    "complete_deal_action",
    "resolve_risk",
]
