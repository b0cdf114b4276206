"""Protocol library views: search, CRUD and favourites."""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.serializers.protocols import ProtocolQuerySerializer, ProtocolSerializer, ProtocolUpdateSerializer
from clinical.services import protocols as svc

from ..permissions import MANAGE_ROLES, require_workspace, workspace_ids_for


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def protocols_list(request):
    user = request.user
    if request.method == 'GET':
        q = ProtocolQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        if q.validated_data.get('workspace_id'):
            require_workspace(user, q.validated_data['workspace_id'])
        qs = svc.search_protocols(user, workspace_ids_for(user), q.validated_data)
        favorites = svc.favorite_ids_for(user)
        return Response({'ok': True, 'data': [svc.serialize_protocol(p, favorite_ids=favorites) for p in qs]})

    s = ProtocolSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = dict(s.validated_data)
    workspace_id = vd.pop('workspace_id', None)
    workspace = require_workspace(user, workspace_id, roles=MANAGE_ROLES) if workspace_id else None
    protocol = svc.create_protocol(user, workspace, vd)
    return Response({'ok': True, 'data': svc.serialize_protocol(protocol, detail=True)},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def protocol_detail(request, pk: int):
    user = request.user
    protocol = svc.get_protocol(user, workspace_ids_for(user), pk)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_protocol(
            protocol, favorite_ids=svc.favorite_ids_for(user), detail=True)})
    if request.method == 'PATCH':
        s = ProtocolUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        vd = dict(s.validated_data)
        vd.pop('workspace_id', None)
        protocol = svc.update_protocol(user, protocol, vd)
        return Response({'ok': True, 'data': svc.serialize_protocol(protocol, detail=True)})
    svc.delete_protocol(user, protocol)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def protocol_favorite(request, pk: int):
    protocol = svc.get_protocol(request.user, workspace_ids_for(request.user), pk)
    is_favorite = svc.toggle_favorite(request.user, protocol)
    return Response({'ok': True, 'data': {'id': protocol.id, 'is_favorite': is_favorite}})
