"""
Organization and workspace views.

Any member can read a workspace and its members; owners and admins
manage membership and settings.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.serializers.workspaces import (
    MemberAddSerializer,
    MemberRoleSerializer,
    OrganizationSerializer,
    WorkspaceSerializer,
    WorkspaceUpdateSerializer,
)
from clinical.services import workspaces as svc

from ..permissions import MANAGE_ROLES, membership_for, require_workspace


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def organizations(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.list_organizations(request.user)})
    s = OrganizationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    org = svc.create_organization(request.user, s.validated_data['name'])
    return Response({'ok': True, 'data': svc.serialize_organization(org, 'owner')}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def workspaces(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.list_workspaces(request.user)})
    s = WorkspaceSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    ws = svc.create_workspace(request.user, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_workspace(ws, 'owner')}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def workspace_detail(request, workspace_id: int):
    if request.method == 'GET':
        ws = require_workspace(request.user, workspace_id)
        member = membership_for(request.user, ws.id)
        return Response({'ok': True, 'data': svc.serialize_workspace(ws, member.role if member else None)})

    if request.method == 'PATCH':
        ws = require_workspace(request.user, workspace_id, roles=MANAGE_ROLES)
        s = WorkspaceUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        ws = svc.update_workspace(request.user, ws, s.validated_data)
        member = membership_for(request.user, ws.id)
        return Response({'ok': True, 'data': svc.serialize_workspace(ws, member.role if member else None)})

    ws = require_workspace(request.user, workspace_id, roles={'owner'})
    svc.delete_workspace(request.user, ws)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def workspace_members(request, workspace_id: int):
    if request.method == 'GET':
        ws = require_workspace(request.user, workspace_id)
        return Response({'ok': True, 'data': [svc.serialize_member(m) for m in svc.list_members(ws)]})

    ws = require_workspace(request.user, workspace_id, roles=MANAGE_ROLES)
    s = MemberAddSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    member = svc.add_member(request.user, ws, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_member(member)}, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def workspace_member_detail(request, workspace_id: int, user_id: int):
    ws = require_workspace(request.user, workspace_id, roles=MANAGE_ROLES)
    if request.method == 'PATCH':
        s = MemberRoleSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        member = svc.update_member_role(request.user, ws, user_id, s.validated_data['role'])
        return Response({'ok': True, 'data': svc.serialize_member(member)})
    svc.remove_member(request.user, ws, user_id)
    return Response(status=status.HTTP_204_NO_CONTENT)
