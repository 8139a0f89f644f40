"""In-memory intelligence repository for seeding, demos, and tests.

Deals are stored with their risk factors and next best actions attached;
``list_deals`` strips them so callers load sub-collections the same way
they would against the SQL store.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.dealintel.domain.schemas import (
    Deal,
    InboundLead,
    Lead,
    NextBestAction,
    RiskFactor,
    User,
)
from src.dealintel.repository.base import IntelligenceRepository


class InMemoryIntelligenceRepository(IntelligenceRepository):
    """Dict-backed repository. Insertion order is preserved."""

    def __init__(
        self,
        *,
        deals: Iterable[Deal] = (),
        users: Iterable[User] = (),
        leads: Iterable[Lead] = (),
        inbound_leads: Iterable[InboundLead] = (),
    ) -> None:
        self._deals: dict[str, Deal] = {}
        self._users: dict[str, User] = {u.id: u for u in users}
        self._leads: dict[str, Lead] = {lead.id: lead for lead in leads}
        self._inbound_leads: dict[str, InboundLead] = {
            lead.id: lead for lead in inbound_leads
        }
        for deal in deals:
            self.save_deal(deal)

    # ── Writes ──────────────────────────────────────────────────────────────

    def save_deal(self, deal: Deal) -> None:
        self._deals[deal.id] = deal

    def save_user(self, user: User) -> None:
        self._users[user.id] = user

    def save_lead(self, lead: Lead) -> None:
        self._leads[lead.id] = lead

    def save_inbound_lead(self, lead: InboundLead) -> None:
        self._inbound_leads[lead.id] = lead

    # ── Reads ───────────────────────────────────────────────────────────────

    async def list_deals(self, owner_id: str) -> list[Deal]:
        return [
            deal.model_copy(update={"risk_factors": [], "next_best_actions": []})
            for deal in self._deals.values()
            if deal.owner_id == owner_id
        ]

    async def list_risk_factors(self, deal_id: str) -> list[RiskFactor]:
        deal = self._deals.get(deal_id)
        return list(deal.risk_factors) if deal else []

    async def list_next_best_actions(self, deal_id: str) -> list[NextBestAction]:
        deal = self._deals.get(deal_id)
        return list(deal.next_best_actions) if deal else []

    async def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def list_leads(self) -> list[Lead]:
        return list(self._leads.values())

    async def list_inbound_leads(self) -> list[InboundLead]:
        return list(self._inbound_leads.values())
