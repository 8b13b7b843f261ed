"""
Board view-model: the state an open action plan board works with.

:class:`ActionPlanBoard` is the single boundary the API and the websocket
consumer talk to.  Reads go through the source ports and the aggregator;
every write goes through the dispatcher using the category of the plan
held in the caller's :class:`BoardSession`.  A failed write leaves the
selection in place and records the error so the same request can be
retried; a successful write clears it and schedules a push refresh for
everyone involved in the plan once the transaction commits.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from django.db import transaction
from django.utils import timezone

from careboard.exceptions import ActionPlanError, DeleteNotAllowed, NotFound, PermissionDenied
from careboard.services.aggregator import Aggregate, Relation, SourceKey, SourceResult, build_aggregate
from careboard.services.broadcast import broadcast_board_refresh
from careboard.services.dispatcher import Dispatcher, Operation
from careboard.services.lifecycle import is_deletable
from careboard.services.ports import SourcePort, build_ports
from careboard.services.records import ActionPlan
from careboard.services.tracker import NotificationTracker

logger = logging.getLogger(__name__)

MANAGER_ROLES = {'manager', 'admin'}


@dataclass(frozen=True)
class Actor:
    identity: str
    display_name: str = ''
    scope_id: Optional[str] = None
    role: str = 'carer'
    is_superuser: bool = False

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(
            identity=user.identity,
            display_name=user.display_name,
            scope_id=user.organization_id,
            role='admin' if user.is_superuser else user.role,
            is_superuser=user.is_superuser,
        )

    @property
    def can_manage(self) -> bool:
        return self.role in MANAGER_ROLES

    def may_access(self, plan: ActionPlan) -> bool:
        """Managers only reach plans of their own organisation; superusers reach all."""
        if self.is_superuser or plan.involves(self.identity):
            return True
        return self.can_manage and self.scope_id is not None and plan.organization_ref == self.scope_id


@dataclass
class BoardSession:
    actor: Actor
    selected: Optional[ActionPlan] = None
    pending_delete: Optional[ActionPlan] = None
    last_error: Optional[ActionPlanError] = None

    def clear(self) -> None:
        self.selected = None
        self.pending_delete = None
        self.last_error = None


class ActionPlanBoard:
    def __init__(self, ports: Optional[Mapping[str, SourcePort]] = None,
                 dispatcher: Optional[Dispatcher] = None,
                 tracker: Optional[NotificationTracker] = None,
                 clock: Callable = timezone.now):
        self.ports = ports if ports is not None else build_ports()
        self.dispatcher = dispatcher or Dispatcher.from_ports(self.ports)
        self.tracker = tracker or NotificationTracker(self.ports, self.dispatcher)
        self.clock = clock

    # -- reads ---------------------------------------------------------------

    def expected_sources(self) -> List[SourceKey]:
        keys = []
        for category, port in self.ports.items():
            keys.append(SourceKey(port.category, Relation.ASSIGNED))
            if port.creator_view:
                keys.append(SourceKey(port.category, Relation.CREATED))
        return keys

    def _read(self, port: SourcePort, relation: Relation, actor: Actor) -> List[ActionPlan]:
        if relation is Relation.CREATED:
            return port.list_created(actor.identity)
        if port.scoped:
            return port.list_by_assignee(actor.identity, actor.scope_id)
        return port.list_assigned(actor.identity)

    def load_sources(self, actor: Actor) -> Dict[SourceKey, SourceResult]:
        results: Dict[SourceKey, SourceResult] = {}
        for key in self.expected_sources():
            try:
                items = self._read(self.ports[key.category], key.relation, actor)
            except ActionPlanError as exc:
                logger.warning("source %s failed for board load: %s", key, exc)
                results[key] = SourceResult.failed(exc.code)
                continue
            results[key] = SourceResult.loaded(items)
        return results

    def get_aggregate(self, actor: Actor) -> Aggregate:
        return build_aggregate(self.load_sources(actor), self.expected_sources(), self.clock())

    def stats(self, actor: Actor) -> Dict[str, int]:
        return self.get_aggregate(actor).stats()

    def get_plan(self, actor: Actor, category, plan_id) -> ActionPlan:
        port = self.ports[self.dispatcher.resolve_category(category)]
        plan = port.get(plan_id)
        if not actor.may_access(plan):
            raise PermissionDenied(category=plan.category)
        return plan

    # -- selection -----------------------------------------------------------

    def select(self, session: BoardSession, category, plan_id) -> ActionPlan:
        try:
            plan = self.get_plan(session.actor, category, plan_id)
        except ActionPlanError as exc:
            session.last_error = exc
            raise
        session.selected = plan
        session.last_error = None
        return plan

    def request_delete(self, session: BoardSession, category, plan_id) -> ActionPlan:
        plan = self.select(session, category, plan_id)
        try:
            self._check_deletable(session.actor, plan)
        except ActionPlanError as exc:
            session.last_error = exc
            raise
        session.pending_delete = plan
        return plan

    def _check_deletable(self, actor: Actor, plan: ActionPlan) -> None:
        if not actor.may_access(plan):
            raise PermissionDenied(category=plan.category)
        if not is_deletable(plan):
            raise DeleteNotAllowed(category=plan.category)

    # -- writes --------------------------------------------------------------

    def update_status(self, session: BoardSession, status: str, comment: Optional[str] = None) -> ActionPlan:
        plan = session.selected
        if plan is None:
            raise NotFound("No action plan selected")
        try:
            updated = self.dispatcher.dispatch(plan.category, Operation.UPDATE_STATUS, {
                'plan_id': plan.id,
                'status': status,
                'comment': comment,
                'actor_id': session.actor.identity,
                'actor_name': session.actor.display_name,
            })
        except ActionPlanError as exc:
            session.last_error = exc
            raise
        session.clear()
        self._schedule_refresh(
            (updated.assigned_to, updated.created_by, session.actor.identity),
            reason='status_updated', category=updated.category.value, plan_id=updated.id,
        )
        return updated

    def delete(self, session: BoardSession) -> None:
        plan = session.pending_delete or session.selected
        if plan is None:
            raise NotFound("No action plan selected")
        try:
            # the selection may be stale; check what is stored now
            category = self.dispatcher.resolve_category(plan.category)
            current = self.ports[category].get(plan.id)
            self._check_deletable(session.actor, current)
            self.dispatcher.dispatch(current.category, Operation.DELETE, {'plan_id': current.id})
        except ActionPlanError as exc:
            session.last_error = exc
            raise
        session.clear()
        self._schedule_refresh(
            (current.assigned_to, current.created_by, session.actor.identity),
            reason='deleted', category=current.category.value, plan_id=current.id,
        )

    def open_board(self, actor: Actor) -> Dict[str, int]:
        acknowledged = self.tracker.acknowledge(actor.identity)
        if any(acknowledged.values()):
            self._schedule_refresh((actor.identity,), reason='acknowledged')
        return acknowledged

    def _schedule_refresh(self, identities: Iterable[str], **event) -> None:
        identities = tuple(identities)
        transaction.on_commit(lambda: broadcast_board_refresh(identities, **event))
