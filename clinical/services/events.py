"""
Channel-layer fan-out used by the services.

Events are sent after the surrounding transaction commits so that a
client reacting to one never reads stale rows.  Publishing a workspace
event also drops that workspace's cached dashboard.
"""
from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import transaction

logger = logging.getLogger(__name__)


def workspace_group(workspace_id) -> str:
    return f'workspace.{workspace_id}'


def user_group(user_id) -> str:
    return f'notifications.{user_id}'


def dashboard_cache_key(workspace_id) -> str:
    return f'dashboard:ws:{workspace_id}'


def send_to_group(group: str, event: dict) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    async_to_sync(channel_layer.group_send)(group, event)


def publish_workspace_event(workspace_id, event: str, data: dict) -> None:
    """Relay ``event`` (e.g. ``task.updated``) to sockets watching the workspace."""
    message = {'type': 'workspace.event', 'event': event, 'workspace_id': workspace_id, 'data': data}

    def _dispatch():
        cache.delete(dashboard_cache_key(workspace_id))
        send_to_group(workspace_group(workspace_id), message)

    transaction.on_commit(_dispatch)
    logger.debug('Queued %s for workspace %s', event, workspace_id)
