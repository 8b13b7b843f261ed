"""
Source ports: the read/write interface of one audit category partition.

One :class:`SourcePort` is built per category over that category's model.
Reads return :class:`ActionPlan` records tagged with the port's category;
writes only ever touch the port's own table.  Store failures are mapped
onto the board's error taxonomy here so that callers above never see ORM
exceptions.
"""
from __future__ import annotations

import functools
import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import InterfaceError, OperationalError, transaction
from django.utils import timezone

from careboard.exceptions import NotFound, PermissionDenied, TransientStoreError, UnsupportedOperation
from careboard.models import PARTITION_MODELS, ActionPlanRecord, Category, Status
from careboard.services.lifecycle import ensure_transition
from careboard.services.notifications import notify_status_change
from careboard.services.records import ActionPlan

logger = logging.getLogger(__name__)


def _translate_store_errors(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.warning("%s partition unavailable during %s: %s", self.category, func.__name__, exc)
            raise TransientStoreError(category=self.category) from exc
    return wrapper


class SourcePort:
    def __init__(self, category: str, model: type[ActionPlanRecord], *,
                 creator_view: bool = False, scoped: bool = False):
        self.category = Category(category)
        self.model = model
        self.creator_view = creator_view
        self.scoped = scoped

    def __repr__(self) -> str:
        return f"SourcePort({self.category}, {self.model.__name__})"

    def _plans(self, qs) -> List[ActionPlan]:
        return [ActionPlan.from_record(r) for r in qs.order_by('-created_at')]

    def _get_record(self, plan_id, *, for_update: bool = False) -> ActionPlanRecord:
        qs = self.model.objects.select_for_update() if for_update else self.model.objects
        try:
            return qs.get(pk=plan_id)
        except (self.model.DoesNotExist, ValidationError, ValueError):
            raise NotFound(f"Action plan {plan_id} not found in {self.category}", category=self.category)

    # -- reads ---------------------------------------------------------------

    @_translate_store_errors
    def list_assigned(self, assigned_to: str) -> List[ActionPlan]:
        return self._plans(self.model.objects.filter(assigned_to=assigned_to))

    @_translate_store_errors
    def list_created(self, created_by: str) -> List[ActionPlan]:
        if not self.creator_view:
            raise UnsupportedOperation(f"{self.category} plans cannot be listed by creator")
        return self._plans(self.model.objects.filter(created_by=created_by))

    @_translate_store_errors
    def list_by_assignee(self, assigned_to: str, scope_id: Optional[str] = None) -> List[ActionPlan]:
        qs = self.model.objects.filter(assigned_to=assigned_to)
        if scope_id:
            qs = qs.filter(organization_ref=scope_id)
        return self._plans(qs)

    @_translate_store_errors
    def unseen_count(self, assigned_to: str) -> int:
        return self.model.objects.filter(assigned_to=assigned_to, is_new=True).count()

    @_translate_store_errors
    def get(self, plan_id) -> ActionPlan:
        return ActionPlan.from_record(self._get_record(plan_id))

    # -- writes --------------------------------------------------------------

    @_translate_store_errors
    def update_status(self, plan_id, status: str, comment: Optional[str] = None, *,
                      actor_id: str, actor_name: Optional[str] = None) -> ActionPlan:
        """Change a plan's status and append the change to its history.

        Only the assignee or the creator may do this.  The viewed flag is
        not written here, so a concurrent mark-viewed never conflicts.
        """
        with transaction.atomic():
            record = self._get_record(plan_id, for_update=True)
            if actor_id not in (record.assigned_to, record.created_by):
                raise PermissionDenied(category=self.category)
            ensure_transition(record.status, status)

            now = timezone.now()
            old_status = record.status
            record.status_history = list(record.status_history or []) + [{
                'status': status,
                'comment': comment or '',
                'updatedBy': actor_id,
                'updatedByName': actor_name or '',
                'updatedAt': now.isoformat(),
            }]
            record.status = status
            record.latest_comment = comment or ''
            if status == Status.COMPLETED:
                record.completed_at = record.completed_at or now
            else:
                record.completed_at = None
            record.save(update_fields=['status', 'status_history', 'latest_comment', 'completed_at', 'updated_at'])
            notify_status_change(record, old_status=old_status, actor_id=actor_id,
                                 actor_name=actor_name, comment=comment)
        return ActionPlan.from_record(record)

    @_translate_store_errors
    def delete(self, plan_id) -> None:
        try:
            deleted, _ = self.model.objects.filter(pk=plan_id).delete()
        except ValidationError:
            deleted = 0
        if not deleted:
            raise NotFound(f"Action plan {plan_id} not found in {self.category}", category=self.category)

    @_translate_store_errors
    def mark_viewed(self, assigned_to: str) -> int:
        """Clear the unseen flag on every plan assigned to ``assigned_to``.

        Returns how many plans were acknowledged; zero when nothing was
        unseen.
        """
        return self.model.objects.filter(assigned_to=assigned_to, is_new=True).update(
            is_new=False, viewed_at=timezone.now()
        )

    @_translate_store_errors
    def purge_completed(self, before: datetime, *, dry_run: bool = False) -> int:
        qs = self.model.objects.filter(status=Status.COMPLETED, completed_at__lt=before)
        if dry_run:
            return qs.count()
        deleted, _ = qs.delete()
        return deleted


def build_ports(config: Optional[Mapping[str, Mapping[str, bool]]] = None) -> Dict[Category, SourcePort]:
    """One port per category, configured from ``CAREBOARD_SOURCES``."""
    config = settings.CAREBOARD_SOURCES if config is None else config
    ports: Dict[Category, SourcePort] = {}
    for category, model in PARTITION_MODELS.items():
        options = config.get(category, {})
        ports[Category(category)] = SourcePort(
            category,
            model,
            creator_view=bool(options.get('creator_view', False)),
            scoped=bool(options.get('scoped', False)),
        )
    return ports
