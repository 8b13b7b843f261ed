import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from careboard.exceptions import ActionPlanError
from careboard.serializers.action_plans import serialize_aggregate
from careboard.services.board import ActionPlanBoard, Actor
from careboard.services.broadcast import board_group

logger = logging.getLogger(__name__)


async def _ws_error(ws, code: int, message: str, *, close: bool = False):
    """
    Uniform error frame.  4xxx for client errors, 5xxx for server errors.
    """
    payload = {"type": "error", "code": code, "message": message}
    try:
        await ws.send(json.dumps(payload))
    finally:
        if close:
            await ws.close(code=code)


class ActionPlanBoardConsumer(AsyncWebsocketConsumer):
    """One open action plan board.

    Joins the actor's board group, sends a snapshot of the aggregate on
    connect and again on every ``board.refresh`` event.  A
    ``{"type": "board.opened"}`` message acknowledges unseen plans.
    """

    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not user.is_authenticated:
            await self.close(code=4001)
            return
        self.actor = Actor.from_user(user)
        self.board = ActionPlanBoard()
        self.group_name = board_group(self.actor.identity)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send_snapshot()

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def send_snapshot(self, reason: str = "connected"):
        aggregate = await database_sync_to_async(self.board.get_aggregate)(self.actor)
        await self.send(json.dumps({"type": "board.snapshot", "reason": reason, **serialize_aggregate(aggregate)}))

    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except ValueError:
            await _ws_error(self, 4000, "invalid_json")
            return
        if not isinstance(data, dict):
            await _ws_error(self, 4003, "invalid_payload")
            return

        if data.get("type") == "board.opened":
            try:
                acknowledged = await database_sync_to_async(self.board.open_board)(self.actor)
            except ActionPlanError as exc:
                await _ws_error(self, 5003, exc.code)
                return
            await self.send(json.dumps({"type": "board.acknowledged", "categories": acknowledged}))
        elif data.get("type") == "board.refresh":
            await self.send_snapshot(reason="requested")
        else:
            await _ws_error(self, 4002, "unsupported_type")

    # group_send({"type": "board.refresh", "reason": ..., "category": ..., "planId": ...})
    async def board_refresh(self, event):
        await self.send_snapshot(reason=event.get("reason") or "refresh")
