"""Inbound lead funnel metrics for the automated lead-response dashboard.

Rolls a collection of inbound leads up into response-time statistics,
funnel rates, frequency breakdowns, intake counts, and a speed-to-lead
histogram. Missing optional fields degrade to documented defaults:
a lead without a response time is left out of the average and the
histogram, and a lead without a region is counted under ``"unknown"``.

Rates are rounded to the nearest whole percent and expressed as a
fraction (``0.33``, never ``0.333``).
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from src.dealintel.config import get_settings
from src.dealintel.core.numbers import percent_fraction, round_half_up
from src.dealintel.domain.schemas import InboundLead, LeadMetrics, SpeedToLeadDistribution

UNKNOWN_REGION = "unknown"

# Upper bounds (exclusive, in seconds) for the speed-to-lead buckets; any
# response at or beyond the last bound falls into ``over_60s``.
SPEED_TO_LEAD_BUCKETS: tuple[tuple[float, str], ...] = (
    (5, "under_5s"),
    (15, "under_15s"),
    (30, "under_30s"),
    (60, "under_60s"),
)


def speed_to_lead_bucket(response_time_ms: int) -> str:
    """Name of the half-open bucket a response latency falls into."""
    seconds = response_time_ms / 1000
    for upper, name in SPEED_TO_LEAD_BUCKETS:
        if seconds < upper:
            return name
    return "over_60s"


def speed_to_lead_distribution(leads: Sequence[InboundLead]) -> SpeedToLeadDistribution:
    """Histogram of response latency over leads that have one."""
    counts = Counter(
        speed_to_lead_bucket(lead.response_time_ms)
        for lead in leads
        if lead.response_time_ms is not None
    )
    return SpeedToLeadDistribution(**counts)


def reference_now() -> datetime:
    """Current time in the configured TIMEZONE.

    Monday midnight follows any daylight-saving change within the week.
    """
    return datetime.now(ZoneInfo(get_settings().TIMEZONE))


def _local(moment: datetime, reference: datetime) -> datetime:
    """Express ``moment`` in the timezone of ``reference``."""
    if reference.tzinfo is None:
        return moment.astimezone().replace(tzinfo=None) if moment.tzinfo is not None else moment
    if moment.tzinfo is None:
        return moment.replace(tzinfo=reference.tzinfo)
    return moment.astimezone(reference.tzinfo)


def day_start(now: datetime) -> datetime:
    """Midnight at the start of ``now``'s day."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def week_start(now: datetime) -> datetime:
    """Midnight of the Monday starting ``now``'s week."""
    return day_start(now) - timedelta(days=now.weekday())


def compute_lead_metrics(
    leads: Sequence[InboundLead], now: datetime | None = None
) -> LeadMetrics:
    """Aggregate inbound leads into funnel metrics.

    Args:
        leads: Every inbound lead to include.
        now: Reference time for the today/week counts, in the timezone
            whose midnight should be used. Defaults to ``reference_now()``.
            Pass a ZoneInfo-aware value; a fixed-offset one is not adjusted
            for daylight-saving changes between Monday and ``now``.

    Returns:
        LeadMetrics with all counts, rates, and the speed-to-lead histogram.
    """
    if now is None:
        now = reference_now()

    total = len(leads)

    response_times = [
        lead.response_time_ms for lead in leads if lead.response_time_ms is not None
    ]
    avg_response = (
        round_half_up(sum(response_times) / len(response_times)) if response_times else 0
    )

    auto_responded = sum(1 for lead in leads if lead.auto_response_sent)
    qualified = sum(1 for lead in leads if lead.ai_qualified)
    converted = sum(1 for lead in leads if lead.converted_deal_id is not None)

    today = day_start(now)
    monday = week_start(now)
    received = [_local(lead.received_at, now) for lead in leads]

    return LeadMetrics(
        total_leads=total,
        avg_response_time_ms=avg_response,
        auto_response_rate=percent_fraction(auto_responded, total),
        qualification_rate=percent_fraction(qualified, total),
        conversion_rate=percent_fraction(converted, total),
        leads_by_status=dict(Counter(lead.status for lead in leads)),
        leads_by_source=dict(Counter(lead.source for lead in leads)),
        leads_by_region=dict(
            Counter(lead.region or UNKNOWN_REGION for lead in leads)
        ),
        today_lead_count=sum(1 for moment in received if moment >= today),
        week_lead_count=sum(1 for moment in received if moment >= monday),
        speed_to_lead_distribution=speed_to_lead_distribution(leads),
    )


__all__ = [
    "UNKNOWN_REGION",
    "SPEED_TO_LEAD_BUCKETS",
    "reference_now",
    "speed_to_lead_bucket",
    "speed_to_lead_distribution",
    "day_start",
    "week_start",
    "compute_lead_metrics",
]
