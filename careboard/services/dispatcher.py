"""
Route action plan writes to the partition that owns them.

The dispatcher holds one :class:`HandlerSet` per category and is the only
place that decides which table a write lands in.  The table must cover
the closed category set exactly; an unknown tag is refused before any
handler runs.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from channels.db import database_sync_to_async
from django.core.exceptions import ImproperlyConfigured

from careboard.exceptions import UnresolvedCategory, UnsupportedOperation
from careboard.models import Category

logger = logging.getLogger(__name__)


class Operation(str, enum.Enum):
    UPDATE_STATUS = 'updateStatus'
    DELETE = 'delete'
    MARK_VIEWED = 'markViewed'
    PURGE_COMPLETED = 'purgeCompleted'


@dataclass(frozen=True)
class HandlerSet:
    update_status: Callable[..., Any]
    delete: Callable[..., Any]
    mark_viewed: Callable[..., Any]
    purge_completed: Callable[..., Any]

    @classmethod
    def from_port(cls, port) -> "HandlerSet":
        return cls(update_status=port.update_status, delete=port.delete,
                   mark_viewed=port.mark_viewed, purge_completed=port.purge_completed)

    def handler_for(self, operation: Operation) -> Callable[..., Any]:
        return {
            Operation.UPDATE_STATUS: self.update_status,
            Operation.DELETE: self.delete,
            Operation.MARK_VIEWED: self.mark_viewed,
            Operation.PURGE_COMPLETED: self.purge_completed,
        }[operation]


class Dispatcher:
    def __init__(self, handlers: Mapping[str, HandlerSet]):
        missing = sorted(set(Category.values) - set(handlers))
        unknown = sorted(str(k) for k in set(handlers) - set(Category.values))
        if missing or unknown:
            raise ImproperlyConfigured(
                f"Dispatcher table must cover every category exactly (missing={missing}, unknown={unknown})"
            )
        self._table: Dict[Category, HandlerSet] = {Category(k): v for k, v in handlers.items()}

    @classmethod
    def from_ports(cls, ports: Mapping[str, Any]) -> "Dispatcher":
        return cls({category: HandlerSet.from_port(port) for category, port in ports.items()})

    @property
    def categories(self):
        return tuple(self._table)

    def resolve_category(self, category) -> Category:
        try:
            return Category(category)
        except ValueError:
            raise UnresolvedCategory(f"Unknown action plan category {category!r}")

    def resolve(self, category, operation) -> Callable[..., Any]:
        handlers = self._table[self.resolve_category(category)]
        try:
            op = Operation(operation)
        except ValueError:
            raise UnsupportedOperation(f"Unknown action plan operation {operation!r}")
        return handlers.handler_for(op)

    def dispatch(self, category, operation, payload: Optional[Mapping[str, Any]] = None):
        handler = self.resolve(category, operation)
        logger.info("dispatch %s %s", Category(category).value, Operation(operation).value)
        return handler(**dict(payload or {}))

    async def adispatch(self, category, operation, payload: Optional[Mapping[str, Any]] = None):
        handler = self.resolve(category, operation)
        logger.info("dispatch %s %s (async)", Category(category).value, Operation(operation).value)
        return await database_sync_to_async(handler)(**dict(payload or {}))
