from typing import Iterable, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from careboard.services.records import identity_digest


def board_group(identity: str) -> str:
    return f"careboard.{identity_digest(identity)}"


def broadcast_board_refresh(identities: Iterable[str], *, reason: str,
                            category: Optional[str] = None, plan_id: Optional[str] = None) -> None:
    """Ask every open board of the given actors to reload its aggregate."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    event = {"type": "board.refresh", "reason": reason, "category": category, "planId": plan_id}
    for identity in sorted({i for i in identities if i}):
        async_to_sync(channel_layer.group_send)(board_group(identity), event)
