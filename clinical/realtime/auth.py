"""
WebSocket authentication from the ``token`` query parameter.

Browsers cannot set headers on a WebSocket handshake, so clients pass
either a JWT access token or a DRF token as ``?token=...``.  A valid
token replaces ``scope['user']``; anything else leaves the session user
(or ``AnonymousUser``) that ``AuthMiddlewareStack`` resolved.
"""
from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from rest_framework.authtoken.models import Token
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed

logger = logging.getLogger(__name__)


def user_for_token(raw: str):
    """Resolve an active user from a JWT access token or a DRF token key."""
    jwt = JWTAuthentication()
    try:
        validated = jwt.get_validated_token(raw)
        user = jwt.get_user(validated)
        return user if user.is_active else None
    except (InvalidToken, TokenError, AuthenticationFailed):
        pass
    token = Token.objects.select_related('user').filter(key=raw).first()
    if token is not None and token.user.is_active:
        return token.user
    return None


class TokenAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        params = parse_qs(scope.get('query_string', b'').decode())
        raw = (params.get('token') or [None])[0]
        if raw:
            user = await database_sync_to_async(user_for_token)(raw)
            if user is not None:
                scope = dict(scope, user=user)
            else:
                logger.info('Rejected WebSocket token for %s', scope.get('path'))
        return await super().__call__(scope, receive, send)
