import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from rest_framework.authtoken.models import Token

from carebase.asgi import application
from clinical.models import Workspace
from clinical.services.events import user_group, workspace_group

pytestmark = pytest.mark.django_db(transaction=True)


def _token(user):
    return Token.objects.create(user=user).key


def test_anonymous_socket_is_rejected(workspace):
    async def run():
        comm = WebsocketCommunicator(application, f'/ws/workspaces/{workspace.id}/')
        connected, code = await comm.connect()
        assert not connected
        assert code == 4001

    async_to_sync(run)()


def test_non_member_and_unknown_workspace(workspace, outsider):
    key = _token(outsider)
    missing = Workspace.objects.order_by('-id').first().id + 100

    async def run():
        comm = WebsocketCommunicator(application, f'/ws/workspaces/{workspace.id}/?token={key}')
        connected, code = await comm.connect()
        assert (connected, code) == (False, 4003)
        comm = WebsocketCommunicator(application, f'/ws/workspaces/{missing}/?token={key}')
        connected, code = await comm.connect()
        assert (connected, code) == (False, 4004)

    async_to_sync(run)()


def test_workspace_events_reach_members(workspace, doctor):
    key = _token(doctor)

    async def run():
        comm = WebsocketCommunicator(application, f'/ws/workspaces/{workspace.id}/?token={key}')
        connected, _ = await comm.connect()
        assert connected
        assert await comm.receive_json_from() == {'type': 'welcome', 'workspace_id': workspace.id}

        await comm.send_to(text_data='{"type": "ping"}')
        assert await comm.receive_json_from() == {'type': 'pong'}
        await comm.send_to(text_data='not json')
        assert (await comm.receive_json_from())['code'] == 4000
        await comm.send_to(text_data='{"type": "subscribe"}')
        assert (await comm.receive_json_from())['code'] == 4002

        await get_channel_layer().group_send(workspace_group(workspace.id), {
            'type': 'workspace.event', 'event': 'task.updated', 'workspace_id': workspace.id, 'data': {'id': 7},
        })
        assert await comm.receive_json_from() == {
            'type': 'event', 'event': 'task.updated', 'workspace_id': workspace.id, 'data': {'id': 7},
        }
        await comm.disconnect()

    async_to_sync(run)()


def test_notification_stream(doctor):
    key = _token(doctor)

    async def run():
        comm = WebsocketCommunicator(application, f'/ws/notifications/?token={key}')
        connected, _ = await comm.connect()
        assert connected
        assert await comm.receive_json_from() == {'type': 'welcome', 'user_id': doctor.id}
        await get_channel_layer().group_send(user_group(doctor.id), {
            'type': 'notification.created', 'notification': {'id': 1, 'title': 'hi'},
        })
        assert await comm.receive_json_from() == {'type': 'notification', 'notification': {'id': 1, 'title': 'hi'}}
        await comm.disconnect()

    async_to_sync(run)()
