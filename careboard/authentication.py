"""
Token authentication for the board API and websocket.

``TokenAuthentication`` keeps a stable import path for the DRF settings.
``TokenAuthMiddleware`` lets a websocket client authenticate with
``?token=<key>`` where it cannot send an ``Authorization`` header; it
falls back to the session user set by ``AuthMiddlewareStack``.
"""
from __future__ import annotations

from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from rest_framework import authentication
from rest_framework.authtoken.models import Token


class TokenAuthentication(authentication.TokenAuthentication):
    keyword = 'Token'


@database_sync_to_async
def _user_for_token(key: str):
    try:
        return Token.objects.select_related('user').get(key=key).user
    except Token.DoesNotExist:
        return None


class TokenAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get('query_string', b'').decode())
        key = (query.get('token') or [None])[0]
        if key:
            user = await _user_for_token(key)
            if user is not None and user.is_active:
                scope = dict(scope, user=user)
        return await super().__call__(scope, receive, send)
