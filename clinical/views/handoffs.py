"""Shift handoff views, including draft generation."""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.serializers.handoffs import (
    HandoffCreateSerializer,
    HandoffGenerateSerializer,
    HandoffListQuerySerializer,
    HandoffUpdateSerializer,
)
from clinical.services import handoffs as svc
from clinical.services.tasks import paginate

from ..permissions import MANAGE_ROLES, WRITE_ROLES, is_super, membership_for, require_workspace, workspace_ids_for


def _can_modify(user, handoff) -> bool:
    if is_super(user) or handoff.from_user_id == user.id:
        return True
    member = membership_for(user, handoff.workspace_id)
    return member is not None and member.role in MANAGE_ROLES


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def handoffs_list(request):
    if request.method == 'GET':
        q = HandoffListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        if q.validated_data.get('workspace_id'):
            require_workspace(request.user, q.validated_data['workspace_id'])
        qs = svc.list_handoffs(workspace_ids_for(request.user), request.user, q.validated_data)
        items, pagination = paginate(qs, q.validated_data.get('page'), q.validated_data.get('limit'))
        return Response({'ok': True, 'data': [svc.serialize_handoff(h) for h in items], 'pagination': pagination})

    s = HandoffCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    workspace = require_workspace(request.user, s.validated_data['workspace_id'], roles=WRITE_ROLES)
    handoff = svc.create_handoff(workspace, request.user, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_handoff(handoff, detail=True)}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def handoff_generate(request):
    """Build a handoff draft from the workspace's active patients."""
    s = HandoffGenerateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    workspace = require_workspace(request.user, vd['workspace_id'], roles=WRITE_ROLES)
    handoff = svc.generate_handoff(
        workspace,
        vd.get('from_user') or request.user.id,
        vd['to_user'],
        patient_ids=vd.get('patient_ids'),
        requested_by=request.user,
    )
    return Response({'ok': True, 'data': svc.serialize_handoff(handoff, detail=True)}, status=status.HTTP_201_CREATED)

handoff_generate.cls.throttle_scope = 'handoff_generate'


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def handoff_detail(request, pk: int):
    handoff = svc.get_handoff(pk, workspace_ids_for(request.user))
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_handoff(handoff, detail=True)})

    if not _can_modify(request.user, handoff):
        raise PermissionDenied('Only the author or a workspace admin can change this handoff')
    if request.method == 'PATCH':
        s = HandoffUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        handoff = svc.update_handoff(handoff, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_handoff(handoff, detail=True)})

    svc.delete_handoff(handoff, request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def handoff_acknowledge(request, pk: int):
    handoff = svc.get_handoff(pk, workspace_ids_for(request.user))
    if handoff.to_user_id != request.user.id and not is_super(request.user):
        raise PermissionDenied('Only the receiving clinician can acknowledge a handoff')
    handoff = svc.acknowledge_handoff(handoff, request.user)
    return Response({'ok': True, 'data': svc.serialize_handoff(handoff)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def handoff_checklist_toggle(request, pk: int, item_id: int):
    handoff = svc.get_handoff(pk, workspace_ids_for(request.user))
    require_workspace(request.user, handoff.workspace_id, roles=WRITE_ROLES)
    item = svc.toggle_checklist_item(handoff, request.user, item_id)
    return Response({'ok': True, 'data': {
        'id': item.id,
        'is_completed': item.is_completed,
        'completed_by': item.completed_by_id,
        'completed_at': item.completed_at.isoformat() if item.completed_at else None,
    }})
