"""Intelligence repository abstract base class.

Every store the dashboard reads from (PostgreSQL via SQLAlchemy, the
in-memory store used for seeding and tests) implements this ABC. The
scoring core never sees storage rows; implementations hand back fully
mapped domain records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.dealintel.domain.schemas import (
    Deal,
    InboundLead,
    Lead,
    NextBestAction,
    RiskFactor,
    User,
)


class IntelligenceRepository(ABC):
    """Abstract read interface over deals, leads, and their owners.

    Methods:
        list_deals: Deals owned by a user, without risks or actions attached.
        list_risk_factors: Risk factors detected on one deal.
        list_next_best_actions: Recommended actions on one deal.
        get_user: Deal owner by ID.
        list_leads: Prospecting leads.
        list_inbound_leads: Inbound leads from the automated response flow.
    """

    @abstractmethod
    async def list_deals(self, owner_id: str) -> list[Deal]:
        """List deals owned by ``owner_id``."""
        ...

    @abstractmethod
    async def list_risk_factors(self, deal_id: str) -> list[RiskFactor]:
        """List risk factors for a deal, resolved ones included."""
        ...

    @abstractmethod
    async def list_next_best_actions(self, deal_id: str) -> list[NextBestAction]:
        """List next best actions for a deal, completed ones included."""
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        """Fetch a user by ID."""
        ...

    @abstractmethod
    async def list_leads(self) -> list[Lead]:
        """List all prospecting leads."""
        ...

    @abstractmethod
    async def list_inbound_leads(self) -> list[InboundLead]:
        """List all inbound leads."""
        ...
