"""
Unseen plan counts and the board-opened acknowledgement.

Acknowledging fires at most one ``markViewed`` per category while a
previous acknowledgement is still in flight.  The in-flight marker is a
cache key taken with ``cache.add`` so concurrent workers agree on who
fires; it is dropped as soon as a check sees the count back at zero and
otherwise expires after ``CAREBOARD_ACK_TTL`` seconds.
"""
from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from django.conf import settings
from django.core.cache import cache

from careboard.exceptions import ActionPlanError
from careboard.services.dispatcher import Dispatcher, Operation
from careboard.services.records import identity_digest

logger = logging.getLogger(__name__)


def ack_key(category: str, identity: str) -> str:
    return f"careboard:ack:{category}:{identity_digest(identity)}"


class NotificationTracker:
    def __init__(self, ports: Mapping[str, object], dispatcher: Dispatcher, *, ttl: Optional[int] = None):
        self.ports = ports
        self.dispatcher = dispatcher
        self.ttl = settings.CAREBOARD_ACK_TTL if ttl is None else ttl

    def unseen_counts(self, identity: str) -> Dict[str, int]:
        return {str(category): port.unseen_count(identity) for category, port in self.ports.items()}

    def acknowledge(self, identity: str) -> Dict[str, int]:
        """Mark unseen plans viewed, category by category.

        Returns the number of plans acknowledged per category.  A category
        that fails is logged and left for the next board open.
        """
        acknowledged: Dict[str, int] = {}
        for category, port in self.ports.items():
            key = ack_key(category, identity)
            acknowledged[str(category)] = 0
            try:
                unseen = port.unseen_count(identity)
            except ActionPlanError as exc:
                logger.warning("unseen count failed for %s: %s", category, exc)
                continue
            if unseen == 0:
                cache.delete(key)
                continue
            if not cache.add(key, True, self.ttl):
                logger.debug("acknowledgement for %s already in flight", category)
                continue
            try:
                acknowledged[str(category)] = self.dispatcher.dispatch(
                    category, Operation.MARK_VIEWED, {'assigned_to': identity}
                )
            except ActionPlanError as exc:
                cache.delete(key)
                logger.warning("mark viewed failed for %s: %s", category, exc)
                continue
            logger.info("acknowledged %s unseen %s plans", acknowledged[str(category)], category)
        return acknowledged
