"""SQL-backed intelligence repository.

Provides SqlIntelligenceRepository with the session_factory callable
pattern: each method opens its own session by iterating the factory,
runs one SELECT, and maps rows through ``repository.mapping``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.dealintel.domain.schemas import (
    Deal,
    InboundLead,
    Lead,
    NextBestAction,
    RiskFactor,
    User,
)
from src.dealintel.repository.base import IntelligenceRepository
from src.dealintel.repository.mapping import (
    model_to_deal,
    model_to_inbound_lead,
    model_to_lead,
    model_to_next_best_action,
    model_to_risk_factor,
    model_to_user,
)
from src.dealintel.repository.models import (
    AccountModel,
    DealModel,
    InboundLeadModel,
    LeadModel,
    NextBestActionModel,
    RiskFactorModel,
    UserModel,
)

logger = structlog.get_logger(__name__)


class SqlIntelligenceRepository(IntelligenceRepository):
    """Read deals, leads, and users from the relational store.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def list_deals(self, owner_id: str) -> list[Deal]:
        """List a user's deals joined with their account names."""
        async for session in self._session_factory():
            stmt = (
                select(DealModel, AccountModel.name)
                .outerjoin(AccountModel, DealModel.account_id == AccountModel.id)
                .where(DealModel.owner_id == owner_id)
                .order_by(DealModel.created_at)
            )
            result = await session.execute(stmt)
            deals = [
                model_to_deal(model, account_name=account_name)
                for model, account_name in result.all()
            ]
            logger.debug("deals_loaded", owner_id=owner_id, count=len(deals))
            return deals
        return []

    async def list_risk_factors(self, deal_id: str) -> list[RiskFactor]:
        async for session in self._session_factory():
            stmt = (
                select(RiskFactorModel)
                .where(RiskFactorModel.deal_id == deal_id)
                .order_by(RiskFactorModel.seq, RiskFactorModel.id)
            )
            result = await session.execute(stmt)
            return [model_to_risk_factor(m) for m in result.scalars().all()]
        return []

    async def list_next_best_actions(self, deal_id: str) -> list[NextBestAction]:
        async for session in self._session_factory():
            stmt = (
                select(NextBestActionModel)
                .where(NextBestActionModel.deal_id == deal_id)
                .order_by(NextBestActionModel.seq, NextBestActionModel.id)
            )
            result = await session.execute(stmt)
            return [model_to_next_best_action(m) for m in result.scalars().all()]
        return []

    async def get_user(self, user_id: str) -> User | None:
        async for session in self._session_factory():
            stmt = select(UserModel).where(UserModel.id == user_id)
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return model_to_user(model)
        return None

    async def list_leads(self) -> list[Lead]:
        async for session in self._session_factory():
            result = await session.execute(select(LeadModel))
            return [model_to_lead(m) for m in result.scalars().all()]
        return []

    async def list_inbound_leads(self) -> list[InboundLead]:
        async for session in self._session_factory():
            stmt = select(InboundLeadModel).order_by(InboundLeadModel.received_at.desc())
            result = await session.execute(stmt)
            return [model_to_inbound_lead(m) for m in result.scalars().all()]
        return []
