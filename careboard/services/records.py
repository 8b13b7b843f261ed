from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from careboard.models import ActionPlanRecord, Category, Status


@dataclass(frozen=True)
class ActionPlan:
    """Read-only view of one plan, tagged with the partition it came from.

    ``category`` is taken from the model class the row was loaded from and
    is the only value the dispatcher accepts when routing a write back.
    """
    id: str
    category: Category
    status: Status
    priority: str
    description: str
    template_name: str = ''
    assigned_to: str = ''
    assigned_to_name: str = ''
    created_by: str = ''
    created_by_name: str = ''
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    is_new: bool = False
    latest_comment: str = ''
    organization_ref: str = ''
    status_history: List[Dict[str, Any]] = field(default_factory=list, compare=False)

    @classmethod
    def from_record(cls, record: ActionPlanRecord) -> "ActionPlan":
        return cls(
            id=str(record.pk),
            category=Category(record.CATEGORY),
            status=Status(record.status),
            priority=record.priority,
            description=record.description,
            template_name=record.template_name,
            assigned_to=record.assigned_to,
            assigned_to_name=record.assigned_to_name,
            created_by=record.created_by,
            created_by_name=record.created_by_name,
            due_date=record.due_date,
            created_at=record.created_at,
            updated_at=record.updated_at,
            completed_at=record.completed_at,
            viewed_at=record.viewed_at,
            is_new=record.is_new,
            latest_comment=record.latest_comment,
            organization_ref=record.organization_ref,
            status_history=list(record.status_history or []),
        )

    def involves(self, identity: str) -> bool:
        return identity in (self.assigned_to, self.created_by)


def identity_digest(identity: str) -> str:
    """Short stable token for an identity, safe in cache keys and group names."""
    return hashlib.sha1(identity.encode('utf-8')).hexdigest()[:20]
