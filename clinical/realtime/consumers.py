"""
WebSocket consumers.

``ws/notifications/`` streams the caller's new notifications.
``ws/workspaces/<id>/`` relays patient, task, handoff and alert changes
to members of that workspace.  Close codes: 4001 unauthenticated,
4003 not a member, 4004 unknown workspace.
"""
import json

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from clinical.models import Workspace
from clinical.permissions import is_super, membership_for
from clinical.services.events import user_group, workspace_group


async def _ws_error(ws, code: int, message: str, *, close: bool = False):
    """Error frame sent to the client; 4xxx are client errors."""
    payload = {"type": "error", "code": code, "message": message}
    try:
        await ws.send(json.dumps(payload))
    finally:
        if close:
            await ws.close(code=code)


def _workspace_access(user, workspace_id) -> int:
    """0 when allowed, otherwise the close code."""
    if not Workspace.objects.filter(id=workspace_id, deleted_at__isnull=True).exists():
        return 4004
    if is_super(user) or membership_for(user, workspace_id) is not None:
        return 0
    return 4003


class _JsonPingMixin:
    async def receive(self, text_data=None, bytes_data=None):
        if not text_data:
            return
        try:
            data = json.loads(text_data)
        except ValueError:
            await _ws_error(self, 4000, "invalid_json")
            return
        if not isinstance(data, dict) or data.get("type") != "ping":
            await _ws_error(self, 4002, "unsupported_type")
            return
        await self.send(json.dumps({"type": "pong"}))


class NotificationsConsumer(_JsonPingMixin, AsyncWebsocketConsumer):
    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not user.is_authenticated:
            await self.close(code=4001)
            return
        self.group_name = user_group(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "user_id": user.id}))

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def notification_created(self, event):
        # event: {"type": "notification.created", "notification": {...}}
        await self.send(json.dumps({"type": "notification", "notification": event["notification"]}))


class WorkspaceConsumer(_JsonPingMixin, AsyncWebsocketConsumer):
    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not user.is_authenticated:
            await self.close(code=4001)
            return
        self.workspace_id = int(self.scope["url_route"]["kwargs"]["workspace_id"])
        denied = await database_sync_to_async(_workspace_access)(user, self.workspace_id)
        if denied:
            await self.close(code=denied)
            return
        self.group_name = workspace_group(self.workspace_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "workspace_id": self.workspace_id}))

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def workspace_event(self, event):
        # event: {"type": "workspace.event", "event": "task.updated", "workspace_id": .., "data": {...}}
        await self.send(json.dumps({
            "type": "event",
            "event": event["event"],
            "workspace_id": event["workspace_id"],
            "data": event["data"],
        }))
