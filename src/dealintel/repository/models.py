"""Persistence models for the deal intelligence store.

Seven SQLAlchemy models:
- UserModel: Deal owners with quota figures
- AccountModel: Companies deals belong to
- DealModel: Opportunities (MEDDIC, stage history, competitors as JSON)
- RiskFactorModel: Risks detected on a deal
- NextBestActionModel: Recommended actions on a deal
- LeadModel: Prospecting leads (signals and company intel as JSON)
- InboundLeadModel: Inbound leads handled by the automated response flow

Rows never leave the repository package; ``repository.mapping`` converts
them into domain records.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Identity,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.dealintel.core.database import Base


class UserModel(Base):
    """Account executive owning deals."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    email: Mapped[str] = mapped_column(String(320), default="")
    quota: Mapped[float | None] = mapped_column(Float, nullable=True)
    closed_won_ytd: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class AccountModel(Base):
    """Company being sold to."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    region: Mapped[str | None] = mapped_column(String(50), nullable=True)


class DealModel(Base):
    """Opportunity row. ``stage`` is stored as its raw string value."""

    __tablename__ = "deals"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    account_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("accounts.id"), nullable=False
    )
    owner_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    value: Mapped[float] = mapped_column(Float, default=0.0)
    stage: Mapped[str] = mapped_column(String(50), nullable=False)
    probability: Mapped[float] = mapped_column(Float, default=10.0)
    health_score: Mapped[int] = mapped_column(Integer, default=50)
    days_in_stage: Mapped[int] = mapped_column(Integer, default=0)
    close_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    meddic: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    stage_history: Mapped[list | None] = mapped_column(JSON, nullable=True)
    competitors: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )


class RiskFactorModel(Base):
    """Risk detected on a deal."""

    __tablename__ = "risk_factors"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Insertion order; breaks severity ties in favour of the first recorded risk
    seq: Mapped[int] = mapped_column(Integer, Identity(), nullable=False, unique=True)
    deal_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("deals.id"), nullable=False, index=True
    )
    severity: Mapped[str] = mapped_column(String(20), default="medium")
    category: Mapped[str] = mapped_column(String(50), default="general")
    description: Mapped[str] = mapped_column(Text, default="")
    mitigation: Mapped[str] = mapped_column(Text, default="")
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False)
    detected_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class NextBestActionModel(Base):
    """Recommended action on a deal."""

    __tablename__ = "next_best_actions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Insertion order; keeps priority ties in recommendation order
    seq: Mapped[int] = mapped_column(Integer, Identity(), nullable=False, unique=True)
    deal_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("deals.id"), nullable=False, index=True
    )
    priority: Mapped[str] = mapped_column(String(20), default="medium")
    type: Mapped[str] = mapped_column(String(50), default="follow_up")
    description: Mapped[str] = mapped_column(Text, default="")
    reasoning: Mapped[str] = mapped_column(Text, default="")
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class LeadModel(Base):
    """Prospecting lead."""

    __tablename__ = "leads"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(200), default="")
    email: Mapped[str] = mapped_column(String(320), default="")
    company: Mapped[str] = mapped_column(String(300), default="")
    title: Mapped[str] = mapped_column(String(200), default="")
    industry: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ai_score: Mapped[int] = mapped_column(Integer, default=0)
    score_factors: Mapped[list | None] = mapped_column(JSON, nullable=True)
    company_intel: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    buying_signals: Mapped[list | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(30), default="new")
    contact_attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_activity: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_contacted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    response_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_scored_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class InboundLeadModel(Base):
    """Inbound lead captured from a web form, email, chat, or event."""

    __tablename__ = "inbound_leads"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    source: Mapped[str] = mapped_column(String(30), default="website")
    first_name: Mapped[str] = mapped_column(String(100), default="")
    last_name: Mapped[str] = mapped_column(String(100), default="")
    email: Mapped[str] = mapped_column(String(320), default="")
    company: Mapped[str] = mapped_column(String(300), default="")
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    employee_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    region: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(30), default="new")
    ai_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ai_qualified: Mapped[bool] = mapped_column(Boolean, default=False)
    auto_response_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    response_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    qualified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    converted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    converted_deal_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
