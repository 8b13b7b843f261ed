"""
Merge per-category source lists into one board aggregate.

Each configured source is identified by a :class:`SourceKey` (category and
relationship to the actor) and reported as a :class:`SourceResult` that is
either not yet requested, loaded (possibly empty) or failed.  A missing or
failed source keeps the aggregate out of the ``ready`` state; it is never
read as "no plans".

Everything here is a pure function of its inputs, the clock included.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from careboard.models import Category, Priority, Status
from careboard.services.lifecycle import board_sort_key, is_overdue
from careboard.services.records import ActionPlan


class Relation(str, enum.Enum):
    ASSIGNED = 'assigned'
    CREATED = 'created'


class SourceState(str, enum.Enum):
    NOT_REQUESTED = 'not_requested'
    LOADED = 'loaded'
    FAILED = 'failed'


_CATEGORY_ORDER = {c: i for i, c in enumerate(Category)}
_RELATION_ORDER = {Relation.ASSIGNED: 0, Relation.CREATED: 1}


@dataclass(frozen=True)
class SourceKey:
    category: Category
    relation: Relation

    def __str__(self) -> str:
        return f"{self.category.value}:{self.relation.value}"

    def order(self) -> Tuple[int, int]:
        return _CATEGORY_ORDER[self.category], _RELATION_ORDER[self.relation]


@dataclass(frozen=True)
class SourceResult:
    state: SourceState = SourceState.NOT_REQUESTED
    items: Tuple[ActionPlan, ...] = ()
    error: Optional[str] = None

    @classmethod
    def loaded(cls, items: Iterable[ActionPlan]) -> "SourceResult":
        return cls(SourceState.LOADED, tuple(items))

    @classmethod
    def failed(cls, error: str) -> "SourceResult":
        return cls(SourceState.FAILED, (), error)

    @property
    def is_loaded(self) -> bool:
        return self.state is SourceState.LOADED


NOT_REQUESTED = SourceResult()


def merge(results: Mapping[SourceKey, SourceResult]) -> List[ActionPlan]:
    """Concatenate loaded sources in canonical order; first occurrence of an id wins."""
    seen = set()
    merged: List[ActionPlan] = []
    for key in sorted(results, key=SourceKey.order):
        result = results[key]
        if not result.is_loaded:
            continue
        for plan in result.items:
            if plan.id in seen:
                continue
            seen.add(plan.id)
            merged.append(plan)
    return merged


@dataclass
class Aggregate:
    ready: bool
    items: List[ActionPlan]
    buckets: Dict[Status, List[ActionPlan]]
    overdue_ids: FrozenSet[str]
    errors: Dict[str, str] = field(default_factory=dict)
    pending_sources: List[str] = field(default_factory=list)

    def is_overdue(self, plan: ActionPlan) -> bool:
        return plan.id in self.overdue_ids

    def find(self, plan_id: str) -> Optional[ActionPlan]:
        return next((p for p in self.items if p.id == plan_id), None)

    def stats(self) -> Dict[str, int]:
        return {
            'total': len(self.items),
            'pending': len(self.buckets[Status.PENDING]),
            'in_progress': len(self.buckets[Status.IN_PROGRESS]),
            'completed': len(self.buckets[Status.COMPLETED]),
            'overdue': len(self.overdue_ids),
            'high_priority': sum(
                1 for p in self.items if p.priority == Priority.HIGH and p.status != Status.COMPLETED
            ),
        }


def build_aggregate(results: Mapping[SourceKey, SourceResult], expected: Sequence[SourceKey],
                    now: datetime) -> Aggregate:
    """Build the board aggregate.

    ``expected`` lists every configured source; any of them absent from
    ``results`` counts as not yet requested.
    """
    items = sorted(merge(results), key=lambda p: board_sort_key(p, now))
    buckets: Dict[Status, List[ActionPlan]] = {s: [] for s in Status}
    for plan in items:
        buckets[plan.status].append(plan)

    errors: Dict[str, str] = {}
    pending_sources: List[str] = []
    for key in sorted(expected, key=SourceKey.order):
        result = results.get(key, NOT_REQUESTED)
        if result.state is SourceState.FAILED:
            errors[str(key)] = result.error or 'failed'
        elif result.state is SourceState.NOT_REQUESTED:
            pending_sources.append(str(key))

    return Aggregate(
        ready=not errors and not pending_sources,
        items=items,
        buckets=buckets,
        overdue_ids=frozenset(p.id for p in items if is_overdue(p, now)),
        errors=errors,
        pending_sources=pending_sources,
    )
