"""Pydantic domain records for the deal intelligence engine.

Defines every structured type the scorers and aggregators consume or
produce:
- Ordered enums: DealStage, Severity, Priority, LeadStatus, SignalType
- Deal records: RiskFactor, NextBestAction, Competitor, StageHistoryEntry,
  MEDDICCategoryScore, MEDDICScore, Deal
- Lead records: BuyingSignal, CompanyIntel, Lead, InboundLead
- Owner: User
- Results: LeadScore, QuotaAttainment, PipelineStageSummary, DealAtRisk,
  TodayAction, ForecastData, DashboardSnapshot, SpeedToLeadDistribution,
  LeadMetrics, DealEnrichment

Storage rows never reach the scoring core directly; the repository
mappers convert them into these records.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.dealintel.config import get_settings


# ── Ordered Enums ───────────────────────────────────────────────────────────


class DealStage(str, Enum):
    """Sales pipeline stage for a deal, in pipeline order."""

    DISCOVERY = "discovery"
    QUALIFICATION = "qualification"
    TECHNICAL_EVALUATION = "technical_evaluation"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"

    @property
    def is_closed(self) -> bool:
        return self in (DealStage.CLOSED_WON, DealStage.CLOSED_LOST)


class _RankedEnum(str, Enum):
    """Totally ordered tier enum; declaration order is rank order.

    Values outside the enum rank with the last tier, so a stray tier
    string coming from upstream sorts after every known tier instead of
    failing the sort.
    """

    @classmethod
    def rank_of(cls, value: Any) -> int:
        members = list(cls)
        try:
            return members.index(cls(value))
        except ValueError:
            return len(members) - 1


class Severity(_RankedEnum):
    """Risk factor severity, most severe first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Priority(_RankedEnum):
    """Next-best-action priority, most urgent first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LeadStatus(str, Enum):
    """Prospecting lead status."""

    NEW = "new"
    CONTACTED = "contacted"
    ENGAGED = "engaged"
    QUALIFIED = "qualified"
    NURTURE = "nurture"
    DISQUALIFIED = "disqualified"
    CONVERTED = "converted"


class SignalType(str, Enum):
    """Kinds of buying signal detected for a lead."""

    JOB_CHANGE = "job_change"
    FUNDING_ROUND = "funding_round"
    TECH_STACK_CHANGE = "tech_stack_change"
    WEBSITE_VISIT = "website_visit"
    CONTENT_ENGAGEMENT = "content_engagement"
    NEWS_MENTION = "news_mention"


# ── Deal Records ────────────────────────────────────────────────────────────


class RiskFactor(BaseModel):
    """A detected risk on a deal. Only ``is_resolved`` ever changes."""

    id: str
    deal_id: str
    severity: Severity | str = Field(default=Severity.MEDIUM, union_mode="left_to_right")
    category: str = "general"
    description: str = ""
    mitigation: str = ""
    is_resolved: bool = False
    detected_at: datetime | None = None


class NextBestAction(BaseModel):
    """A recommended action on a deal. Completed at most once."""

    id: str
    deal_id: str
    priority: Priority | str = Field(default=Priority.MEDIUM, union_mode="left_to_right")
    type: str = "follow_up"
    description: str = ""
    reasoning: str = ""
    is_completed: bool = False
    due_date: datetime | None = None
    completed_at: datetime | None = None


class Competitor(BaseModel):
    """Competitor active on a deal."""

    name: str
    threat_level: str = "medium"
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class StageHistoryEntry(BaseModel):
    """One visit of a deal to a stage."""

    stage: DealStage
    entered_at: datetime
    exited_at: datetime | None = None


class MEDDICCategoryScore(BaseModel):
    """A single MEDDIC dimension: 0-10 score plus free-text notes."""

    score: int = 0
    notes: str = ""


class MEDDICScore(BaseModel):
    """Six MEDDIC dimensions. ``overall`` is derived, never stored.

    A dimension left as None has not been assessed yet and counts as 0.
    """

    metrics: MEDDICCategoryScore | None = None
    economic_buyer: MEDDICCategoryScore | None = None
    decision_criteria: MEDDICCategoryScore | None = None
    decision_process: MEDDICCategoryScore | None = None
    identify_pain: MEDDICCategoryScore | None = None
    champion: MEDDICCategoryScore | None = None

    @property
    def overall(self) -> int:
        """0-100 overall score recomputed from the six dimensions."""
        from src.dealintel.scoring.meddic import overall_score

        return overall_score(self)


class Deal(BaseModel):
    """An opportunity owned by one user and belonging to one account."""

    id: str
    account_id: str
    account_name: str | None = None
    name: str
    value: float = Field(default=0.0, ge=0.0)
    stage: DealStage = DealStage.DISCOVERY
    probability: float = Field(default=10.0, ge=0.0, le=100.0)
    health_score: int = Field(default=50, ge=0, le=100)
    days_in_stage: int = 0
    close_date: datetime | None = None
    meddic: MEDDICScore = Field(default_factory=MEDDICScore)
    risk_factors: list[RiskFactor] = Field(default_factory=list)
    next_best_actions: list[NextBestAction] = Field(default_factory=list)
    competitors: list[Competitor] = Field(default_factory=list)
    stage_history: list[StageHistoryEntry] = Field(default_factory=list)
    owner_id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return not self.stage.is_closed


# ── Lead Records ────────────────────────────────────────────────────────────


class BuyingSignal(BaseModel):
    """Evidence of purchase intent. ``impact_score`` may be negative."""

    type: SignalType | str = Field(union_mode="left_to_right")
    description: str = ""
    detected_at: datetime | None = None
    source: str = ""
    impact_score: int = 0


class CompanyIntel(BaseModel):
    """Enrichment data about the lead's company."""

    summary: str = ""
    recent_news: list[str] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    estimated_revenue: str | None = None
    employee_count: int | None = None


class Lead(BaseModel):
    """A prospecting lead scored by the signal scorer."""

    id: str
    display_name: str = ""
    email: str = ""
    company: str = ""
    title: str = ""
    industry: str | None = None
    ai_score: int = Field(default=0, ge=0, le=100)
    score_factors: list[str] = Field(default_factory=list, max_length=3)
    company_intel: CompanyIntel = Field(default_factory=CompanyIntel)
    buying_signals: list[BuyingSignal] = Field(default_factory=list)
    status: LeadStatus = LeadStatus.NEW
    contact_attempts: int = Field(default=0, ge=0)
    last_activity: datetime | None = None
    last_contacted_at: datetime | None = None
    response_time_ms: int | None = None
    last_scored_at: datetime | None = None


class InboundLead(BaseModel):
    """An inbound lead handled by the automated response flow."""

    id: str
    source: str = "website"
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    company: str = ""
    title: str | None = None
    employee_count: int | None = None
    region: str | None = None
    status: str = "new"
    ai_score: int | None = None
    ai_qualified: bool = False
    auto_response_sent: bool = False
    response_time_ms: int | None = None
    received_at: datetime
    qualified_at: datetime | None = None
    converted_at: datetime | None = None
    converted_deal_id: str | None = None


class User(BaseModel):
    """Deal owner. Quota fields fall back to configured placeholders."""

    id: str
    name: str = ""
    email: str = ""
    quota: float = Field(default_factory=lambda: get_settings().DEFAULT_QUOTA)
    closed_won_ytd: float = Field(
        default_factory=lambda: get_settings().DEFAULT_CLOSED_WON_YTD
    )


# ── Scoring Results ─────────────────────────────────────────────────────────


class LeadScore(BaseModel):
    """Propensity score for a lead with its most diagnostic factors."""

    lead_id: str = ""
    score: int = Field(ge=0, le=100)
    factors: list[str] = Field(default_factory=list, max_length=3)
    breakdown: dict[str, int] = Field(default_factory=dict)


# ── Dashboard Results ───────────────────────────────────────────────────────


class QuotaAttainment(BaseModel):
    quota: float
    closed_won: float
    weighted_pipeline: int
    gap: float
    projected: int
    attainment_percent: int
    pipeline_coverage: float = 0.0


class PipelineStageSummary(BaseModel):
    stage: DealStage
    label: str
    count: int = 0
    value: float = Field(default=0.0, ge=0.0)


class DealAtRisk(BaseModel):
    deal_id: str
    deal_name: str
    account_name: str
    value: float
    health_score: int
    stage: DealStage
    top_risk: str
    days_in_stage: int
    days_until_close: int | None = None


class TodayAction(BaseModel):
    deal_id: str
    deal_name: str
    account_name: str
    action: NextBestAction


class ForecastData(BaseModel):
    """Cumulative forecast bands: commit <= best_case <= pipeline."""

    commit: float
    best_case: float
    pipeline: float
    target: float


class DashboardSnapshot(BaseModel):
    """Portfolio view for one deal owner.

    ``is_partial`` is set when some deals could not be fully loaded; those
    deals are excluded from every figure and listed in ``missing_deal_ids``.
    """

    user_id: str
    quota_attainment: QuotaAttainment
    pipeline_by_stage: list[PipelineStageSummary]
    deals_at_risk: list[DealAtRisk]
    today_actions: list[TodayAction]
    forecast: ForecastData
    is_partial: bool = False
    missing_deal_ids: list[str] = Field(default_factory=list)
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class SpeedToLeadDistribution(BaseModel):
    under_5s: int = 0
    under_15s: int = 0
    under_30s: int = 0
    under_60s: int = 0
    over_60s: int = 0

    @property
    def total(self) -> int:
        return (
            self.under_5s
            + self.under_15s
            + self.under_30s
            + self.under_60s
            + self.over_60s
        )


class LeadMetrics(BaseModel):
    total_leads: int = 0
    avg_response_time_ms: int = 0
    auto_response_rate: float = 0.0
    qualification_rate: float = 0.0
    conversion_rate: float = 0.0
    leads_by_status: dict[str, int] = Field(default_factory=dict)
    leads_by_source: dict[str, int] = Field(default_factory=dict)
    leads_by_region: dict[str, int] = Field(default_factory=dict)
    today_lead_count: int = 0
    week_lead_count: int = 0
    speed_to_lead_distribution: SpeedToLeadDistribution = Field(
        default_factory=SpeedToLeadDistribution
    )


class DealEnrichment(BaseModel):
    """AI-produced deal overview, parsed by the caller."""

    summary: str
    insights: list[str] = Field(default_factory=list)
    is_fallback: bool = False
