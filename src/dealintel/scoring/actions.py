"""Next-best-action prioritization.

Three views over a deal's recommended actions:
- urgent_actions: incomplete critical/high actions (the "do it today" set)
- prioritize: stable sort by the shared ``Priority`` tier order
- deal_room_actions: every action, incomplete first, then by priority

``today_actions`` flattens the urgent set across a portfolio's active deals
and attaches the deal/account context the dashboard displays.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.dealintel.domain.schemas import Deal, NextBestAction, Priority, TodayAction

URGENT_PRIORITIES: tuple[Priority, ...] = (Priority.CRITICAL, Priority.HIGH)

UNKNOWN_ACCOUNT = "Unknown"


def _is_urgent(action: NextBestAction) -> bool:
    return Priority.rank_of(action.priority) <= Priority.rank_of(URGENT_PRIORITIES[-1])


def urgent_actions(actions: Iterable[NextBestAction]) -> list[NextBestAction]:
    """Incomplete actions at critical or high priority, in input order."""
    return [a for a in actions if not a.is_completed and _is_urgent(a)]


def prioritize(actions: Iterable[NextBestAction]) -> list[NextBestAction]:
    """Stable sort by priority tier; unknown priorities sort last."""
    return sorted(actions, key=lambda a: Priority.rank_of(a.priority))


def deal_room_actions(actions: Iterable[NextBestAction]) -> list[NextBestAction]:
    """All actions with completed ones demoted below incomplete ones."""
    return sorted(
        actions,
        key=lambda a: (a.is_completed, Priority.rank_of(a.priority)),
    )


def today_actions(deals: Iterable[Deal]) -> list[TodayAction]:
    """Urgent actions across all active deals, most urgent first.

    Within a priority tier, actions keep deal order then per-deal order.
    """
    collected: list[TodayAction] = []
    for deal in deals:
        if not deal.is_active:
            continue
        for action in urgent_actions(deal.next_best_actions):
            collected.append(
                TodayAction(
                    deal_id=deal.id,
                    deal_name=deal.name,
                    account_name=deal.account_name or UNKNOWN_ACCOUNT,
                    action=action,
                )
            )
    collected.sort(key=lambda item: Priority.rank_of(item.action.priority))
    return collected


__all__ = [
    "URGENT_PRIORITIES",
    "UNKNOWN_ACCOUNT",
    "urgent_actions",
    "prioritize",
    "deal_room_actions",
    "today_actions",
]
