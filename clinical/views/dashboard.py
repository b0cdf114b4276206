"""
Workspace dashboard endpoint.

Patient counts by workflow state, open and overdue tasks and active
alerts by severity, cached per workspace for ``DASHBOARD_CACHE_SECONDS``.
The caller's unread notification count is always live.  ``?refresh=1``
bypasses the cache.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.services.dashboard import get_dashboard

from ..permissions import require_workspace


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def workspace_dashboard(request, workspace_id: int):
    ws = require_workspace(request.user, workspace_id)
    refresh = (request.query_params.get('refresh') or '0') in ['1', 'true', 'True']
    return Response({'ok': True, 'data': get_dashboard(ws.id, request.user, refresh=refresh)})
