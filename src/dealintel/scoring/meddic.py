"""MEDDIC overall score aggregation.

Combines the six MEDDIC dimensions (each 0-10) into a single 0-100 figure:

    overall = round(mean(six dimension scores) * 10)

The denominator is always six. A dimension that has not been assessed
counts as 0 rather than being dropped from the mean, so a half-qualified
deal cannot look healthier than it is. Notes never participate.
"""

from __future__ import annotations

from src.dealintel.core.numbers import round_half_up
from src.dealintel.domain.errors import InvalidDomainValueError
from src.dealintel.domain.schemas import MEDDICCategoryScore, MEDDICScore

MEDDIC_CATEGORIES: tuple[str, ...] = (
    "metrics",
    "economic_buyer",
    "decision_criteria",
    "decision_process",
    "identify_pain",
    "champion",
)

MIN_CATEGORY_SCORE = 0
MAX_CATEGORY_SCORE = 10


def category_score(meddic: MEDDICScore, category: str) -> int:
    """Return one dimension's score, 0 when unassessed.

    Raises:
        InvalidDomainValueError: If the stored score is outside [0, 10].
    """
    entry: MEDDICCategoryScore | None = getattr(meddic, category)
    if entry is None:
        return 0
    if not MIN_CATEGORY_SCORE <= entry.score <= MAX_CATEGORY_SCORE:
        raise InvalidDomainValueError(
            f"meddic.{category}.score",
            entry.score,
            f"{MIN_CATEGORY_SCORE}-{MAX_CATEGORY_SCORE}",
        )
    return entry.score


def overall_score(meddic: MEDDICScore) -> int:
    """Compute the 0-100 overall MEDDIC score."""
    total = sum(category_score(meddic, category) for category in MEDDIC_CATEGORIES)
    return round_half_up(total / len(MEDDIC_CATEGORIES) * 10)


def weakest_categories(meddic: MEDDICScore, limit: int = 2) -> list[str]:
    """Return the lowest-scoring dimensions, ties kept in MEDDIC order."""
    ranked = sorted(
        MEDDIC_CATEGORIES,
        key=lambda category: category_score(meddic, category),
    )
    return ranked[:limit]


__all__ = [
    "MEDDIC_CATEGORIES",
    "category_score",
    "overall_score",
    "weakest_categories",
]
