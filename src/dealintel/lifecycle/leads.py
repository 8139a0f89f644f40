"""Lead lifecycle rules for prospecting and inbound leads.

Prospecting leads move through a fixed status graph:

    new -> contacted -> engaged | qualified -> nurture | disqualified -> converted

with a few shortcuts (an engaged lead can qualify, a nurtured lead can
re-engage). ``contact_attempts`` only ever grows and ``response_time_ms``
is recorded once, at the first response.

Inbound leads are qualified or disqualified by an SDR and converted only
from the qualified state.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from src.dealintel.domain.errors import InvalidDomainValueError
from src.dealintel.domain.schemas import InboundLead, Lead, LeadStatus

logger = structlog.get_logger(__name__)

# ── Status Transition Rules ─────────────────────────────────────────────────

VALID_LEAD_TRANSITIONS: dict[LeadStatus, set[LeadStatus]] = {
    LeadStatus.NEW: {LeadStatus.CONTACTED, LeadStatus.DISQUALIFIED},
    LeadStatus.CONTACTED: {
        LeadStatus.ENGAGED,
        LeadStatus.QUALIFIED,
        LeadStatus.NURTURE,
        LeadStatus.DISQUALIFIED,
    },
    LeadStatus.ENGAGED: {
        LeadStatus.QUALIFIED,
        LeadStatus.NURTURE,
        LeadStatus.DISQUALIFIED,
    },
    LeadStatus.QUALIFIED: {
        LeadStatus.CONVERTED,
        LeadStatus.NURTURE,
        LeadStatus.DISQUALIFIED,
    },
    LeadStatus.NURTURE: {
        LeadStatus.ENGAGED,
        LeadStatus.DISQUALIFIED,
        LeadStatus.CONVERTED,
    },
    LeadStatus.DISQUALIFIED: {LeadStatus.CONVERTED},
    LeadStatus.CONVERTED: set(),  # Terminal
}


class InvalidLeadTransitionError(ValueError):
    """Raised when a lead status change violates the transition rules."""

    def __init__(self, from_status: str, to_status: str, reason: str = "") -> None:
        self.from_status = from_status
        self.to_status = to_status
        message = f"Invalid lead transition: {from_status} -> {to_status}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


def parse_lead_status(raw: Any) -> LeadStatus:
    """Convert a raw status value into a LeadStatus.

    Raises:
        InvalidDomainValueError: If the value is not a known lead status.
    """
    try:
        return LeadStatus(raw)
    except ValueError:
        raise InvalidDomainValueError(
            "lead.status", raw, ", ".join(s.value for s in LeadStatus)
        ) from None


def validate_lead_transition(from_status: LeadStatus, to_status: LeadStatus) -> None:
    """Validate a prospecting lead status change.

    Raises:
        InvalidLeadTransitionError: If the transition is not allowed.
    """
    allowed = VALID_LEAD_TRANSITIONS.get(from_status, set())
    if to_status not in allowed:
        raise InvalidLeadTransitionError(
            from_status.value,
            to_status.value,
            "allowed: " + (", ".join(sorted(s.value for s in allowed)) or "none"),
        )


def transition_lead(lead: Lead, status: LeadStatus) -> Lead:
    """Return a copy of the lead in the new status."""
    validate_lead_transition(lead.status, status)
    logger.info(
        "lead_status_transition",
        lead_id=lead.id,
        from_status=lead.status.value,
        to_status=status.value,
    )
    return lead.model_copy(update={"status": status})


def record_contact_attempt(lead: Lead, now: datetime | None = None) -> Lead:
    """Count an outreach attempt; the first one moves a new lead to contacted."""
    if now is None:
        now = datetime.now(timezone.utc)
    update: dict = {
        "contact_attempts": lead.contact_attempts + 1,
        "last_contacted_at": now,
        "last_activity": now,
    }
    if lead.status == LeadStatus.NEW:
        update["status"] = LeadStatus.CONTACTED
    return lead.model_copy(update=update)


def record_response_time(lead: Lead, response_time_ms: int) -> Lead:
    """Record time-to-first-response. Later responses do not overwrite it."""
    if lead.response_time_ms is not None:
        return lead
    if response_time_ms < 0:
        raise ValueError(f"response_time_ms must be >= 0, got {response_time_ms}")
    return lead.model_copy(update={"response_time_ms": response_time_ms})


# ── Inbound Leads ───────────────────────────────────────────────────────────


def qualify_inbound_lead(
    lead: InboundLead, qualified: bool, now: datetime | None = None
) -> InboundLead:
    """Apply an SDR qualification decision."""
    if lead.status == "converted":
        raise InvalidLeadTransitionError(
            lead.status,
            "qualified" if qualified else "disqualified",
            "lead already converted",
        )
    if now is None:
        now = datetime.now(timezone.utc)
    return lead.model_copy(
        update={
            "status": "qualified" if qualified else "disqualified",
            "qualified_at": now if qualified else None,
        }
    )


def convert_inbound_lead(
    lead: InboundLead, deal_id: str, now: datetime | None = None
) -> InboundLead:
    """Link a qualified inbound lead to the deal created from it."""
    if lead.status != "qualified":
        raise InvalidLeadTransitionError(
            lead.status, "converted", "lead must be qualified before conversion"
        )
    if lead.converted_deal_id is not None:
        raise InvalidLeadTransitionError(
            lead.status, "converted", "lead already converted"
        )
    if now is None:
        now = datetime.now(timezone.utc)
    return lead.model_copy(
        update={
            "status": "converted",
            "converted_at": now,
            "converted_deal_id": deal_id,
        }
    )


__all__ = [
    "VALID_LEAD_TRANSITIONS",
    "InvalidLeadTransitionError",
    "parse_lead_status",
    "validate_lead_transition",
    "transition_lead",
    "record_contact_attempt",
    "record_response_time",
    "qualify_inbound_lead",
    "convert_inbound_lead",
]
