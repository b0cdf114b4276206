"""
Custom authentication backend for token-based auth.

Kept apart from the auth views so that DRF can import the class while
it initialises without pulling in view modules.  JWT bearer tokens are
the primary scheme; the ``Token`` keyword remains for scripts and the
WebSocket query-string login.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """DRF token authentication using the ``Token`` keyword.

    Inactive users are rejected by the parent class; this subclass gives
    the settings a stable import path.
    """

    keyword = 'Token'
