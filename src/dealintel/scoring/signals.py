"""Deterministic lead propensity scoring from weighted evidence.

Computes a 0-100 score for a prospecting lead by adding weighted
adjustments to a neutral base of 50, then clamping. Each adjustment that
carries an explanation contributes a human-readable factor; only the first
three factors are kept, in computation order, because earlier evidence
(title, explicit buying signals) is more diagnostic than later evidence
(engagement decay, recency).

IMPORTANT: Do NOT use LLM for score computation. The score is a deterministic
numeric calculation. AI enrichment feeds the buying signals, not the math.

Exports:
    LeadSignalScorer: Configurable rule-based lead scorer.
    CAD_CAE_TOOLS: Tool names that earn the tech-stack match bonus.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from src.dealintel.domain.schemas import BuyingSignal, Lead, LeadScore, LeadStatus

# Design and simulation tools whose presence marks a lead as a product fit.
CAD_CAE_TOOLS: tuple[str, ...] = (
    "solidworks",
    "autocad",
    "inventor",
    "fusion 360",
    "catia",
    "creo",
    "siemens nx",
    "solid edge",
    "onshape",
    "ansys",
    "abaqus",
    "comsol",
    "nastran",
    "hypermesh",
)

# (tier label, points, whole-word acronyms, substring phrases), highest first.
_TITLE_TIERS: tuple[tuple[str, int, tuple[str, ...], tuple[str, ...]], ...] = (
    ("C-level", 15, ("cto", "ceo", "coo"), ("chief",)),
    ("VP", 12, ("vp", "svp", "evp"), ("vice president",)),
    ("Director", 10, (), ("director",)),
    ("Manager", 7, (), ("head of", "manager")),
    ("Senior", 3, (), ("senior", "lead")),
)

MAX_FACTORS = 3
SIGNAL_DESCRIPTION_LIMIT = 80


class LeadSignalScorer:
    """Compute a lead propensity score (0-100) from weighted evidence.

    Adjustments, applied in this order:
        title seniority:    C-level +15, VP +12, Director +10,
                            Head of/Manager +7, Senior/Lead +3
        buying signals:     + each signal's impact_score (signed, uncapped)
        tech stack match:   +10 if a known CAD/CAE tool is in use
        company size:       +5 if employee count > 100
        engagement:         +10 if contacted at least once and engaged
        cooldown:           -15 if 3+ attempts and not engaged/qualified
        recency:            +5 if active within 7 days (no factor),
                            -10 if no activity for over 30 days

    The sum is clamped to [0, 100] only at the end, so several strong
    signals can saturate the score but never overflow it.

    Args:
        base_score: Neutral starting score.
        large_company_threshold: Employee count above which the size bonus applies.
        cooldown_attempts: Contact attempts at which the cooldown penalty applies.
        recent_days: Activity younger than this many days earns the recency bonus.
        stale_days: Activity older than this many days takes the stale penalty.
        known_tools: Tool names matched against the lead's tech stack.
    """

    def __init__(
        self,
        *,
        base_score: int = 50,
        large_company_threshold: int = 100,
        cooldown_attempts: int = 3,
        recent_days: int = 7,
        stale_days: int = 30,
        known_tools: tuple[str, ...] = CAD_CAE_TOOLS,
    ) -> None:
        self._base_score = base_score
        self._large_company_threshold = large_company_threshold
        self._cooldown_attempts = cooldown_attempts
        self._recent_days = recent_days
        self._stale_days = stale_days
        self._known_tools = tuple(t.lower() for t in known_tools)

    # ── Signal Scorers (private) ─────────────────────────────────────────

    @staticmethod
    def _score_title(title: str) -> tuple[int, str | None]:
        """Title seniority: first matching tier wins."""
        normalized = title.lower()
        words = set(re.findall(r"[a-z]+", normalized))
        for label, points, acronyms, phrases in _TITLE_TIERS:
            if words.intersection(acronyms) or any(p in normalized for p in phrases):
                return points, f"{label} title: {title.strip()}"
        return 0, None

    @staticmethod
    def _signal_factor(signal: BuyingSignal) -> str:
        signal_type = getattr(signal.type, "value", signal.type)
        label = str(signal_type).replace("_", " ")
        description = signal.description[:SIGNAL_DESCRIPTION_LIMIT]
        return f"Buying signal ({label}): {description}"

    def _matched_tool(self, tech_stack: list[str]) -> str | None:
        for entry in tech_stack:
            lowered = entry.lower()
            if any(tool in lowered for tool in self._known_tools):
                return entry
        return None

    @staticmethod
    def _days_since(moment: datetime, now: datetime) -> float:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return (now - moment).total_seconds() / 86400

    # ── Main Scoring Method ──────────────────────────────────────────────

    def score(self, lead: Lead, now: datetime | None = None) -> LeadScore:
        """Compute the propensity score for a lead.

        Args:
            lead: Lead with title, buying signals, company intel and engagement.
            now: Reference time for recency; defaults to the current UTC time.

        Returns:
            LeadScore with the clamped score, up to three factors, and a
            per-adjustment breakdown.
        """
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        breakdown: dict[str, int] = {"base": self._base_score}
        factors: list[str] = []

        # Step 1: Title seniority
        title_points, title_factor = self._score_title(lead.title or "")
        if title_points:
            breakdown["title"] = title_points
            factors.append(title_factor)

        # Step 2: Buying signals compound additively
        signal_points = 0
        for signal in lead.buying_signals:
            signal_points += signal.impact_score
            factors.append(self._signal_factor(signal))
        if lead.buying_signals:
            breakdown["buying_signals"] = signal_points

        # Step 3: Tech stack match
        tool = self._matched_tool(lead.company_intel.tech_stack)
        if tool is not None:
            breakdown["tech_stack"] = 10
            factors.append(f"Uses {tool}")

        # Step 4: Company size
        employees = lead.company_intel.employee_count
        if employees is not None and employees > self._large_company_threshold:
            breakdown["company_size"] = 5
            factors.append(f"{employees} employees")

        # Step 5: Engagement
        if lead.contact_attempts > 0 and lead.status == LeadStatus.ENGAGED:
            breakdown["engagement"] = 10
            factors.append("Actively engaged after outreach")

        # Step 6: Cooldown after repeated unanswered attempts
        if lead.contact_attempts >= self._cooldown_attempts and lead.status not in (
            LeadStatus.ENGAGED,
            LeadStatus.QUALIFIED,
        ):
            breakdown["cooldown"] = -15
            factors.append(
                f"{lead.contact_attempts} contact attempts without engagement, cooling down"
            )

        # Step 7: Recency of last activity
        if lead.last_activity is not None:
            days = self._days_since(lead.last_activity, now)
            if days < self._recent_days:
                breakdown["recency"] = 5
            elif days > self._stale_days:
                breakdown["recency"] = -10
                factors.append(f"No activity in {int(days)} days, stale")

        raw_score = sum(breakdown.values())
        final_score = max(0, min(100, raw_score))

        return LeadScore(
            lead_id=lead.id,
            score=final_score,
            factors=factors[:MAX_FACTORS],
            breakdown=breakdown,
        )


__all__ = ["LeadSignalScorer", "CAD_CAE_TOOLS"]
