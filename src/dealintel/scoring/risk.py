"""Risk ranking for deals.

Selects the single most severe open risk on a deal. Severity order comes
from the shared ``Severity`` enum (critical < high < medium < low); values
outside the enum rank with ``low``. Sorting is stable, so among risks of
equal severity the earliest-recorded one wins -- risk lists are usually
chronological and the first detection is the one the AE has context on.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.dealintel.domain.schemas import Deal, RiskFactor, Severity

NO_RISK_IDENTIFIED = "No specific risk identified"


def open_risks(risks: Iterable[RiskFactor]) -> list[RiskFactor]:
    """Unresolved risks, most severe first, insertion order within a tier."""
    return sorted(
        (risk for risk in risks if not risk.is_resolved),
        key=lambda risk: Severity.rank_of(risk.severity),
    )


def top_risk(risks: Iterable[RiskFactor]) -> RiskFactor | None:
    """Return the most severe unresolved risk, or None if all are resolved."""
    ranked = open_risks(risks)
    return ranked[0] if ranked else None


def top_risk_for_deal(deal: Deal) -> RiskFactor | None:
    return top_risk(deal.risk_factors)


def top_risk_description(risks: Iterable[RiskFactor]) -> str:
    """Display text for the top risk, with a sentinel when there is none."""
    risk = top_risk(risks)
    if risk is None:
        return NO_RISK_IDENTIFIED
    return risk.description or NO_RISK_IDENTIFIED


__all__ = [
    "NO_RISK_IDENTIFIED",
    "open_risks",
    "top_risk",
    "top_risk_for_deal",
    "top_risk_description",
]
