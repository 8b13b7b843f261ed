"""
Action plan lifecycle: allowed status transitions, the overdue predicate
and the board ordering shared by the aggregator and the API.

Plans move ``pending -> in_progress -> completed`` or straight from
``pending`` to ``completed``.  Re-submitting the current status is allowed
so that an assignee can add a comment without changing state.  Nothing
moves backwards; ``completed`` is terminal and the only state from which
a plan may be deleted.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from django.utils import timezone

from careboard.exceptions import InvalidTransition
from careboard.models import Priority, Status

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    Status.PENDING: frozenset({Status.PENDING, Status.IN_PROGRESS, Status.COMPLETED}),
    Status.IN_PROGRESS: frozenset({Status.IN_PROGRESS, Status.COMPLETED}),
    Status.COMPLETED: frozenset({Status.COMPLETED}),
}

PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def can_transition(current: str, new: str) -> bool:
    """Return True if a plan may move from ``current`` to ``new``."""
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: str, new: str) -> None:
    if new not in Status.values:
        raise InvalidTransition(f"Unknown status '{new}'")
    if not can_transition(current, new):
        raise InvalidTransition(f"Cannot move an action plan from '{current}' to '{new}'")


def is_overdue(plan, now: Optional[datetime] = None) -> bool:
    """Due date passed and not completed.  Works on records and model rows."""
    now = now or timezone.now()
    return bool(plan.due_date is not None and plan.due_date < now and plan.status != Status.COMPLETED)


def is_deletable(plan) -> bool:
    return plan.status == Status.COMPLETED


def board_sort_key(plan, now: datetime) -> tuple:
    # overdue first, then priority, then earliest due date, then newest
    due = plan.due_date.timestamp() if plan.due_date else float('inf')
    created = plan.created_at.timestamp() if plan.created_at else 0.0
    return (
        0 if is_overdue(plan, now) else 1,
        PRIORITY_RANK.get(plan.priority, len(PRIORITY_RANK)),
        due,
        -created,
    )
