"""
Task management views.

Tasks are scoped to the workspaces the caller is an active member of.
Listing spans all of them unless ``workspace_id`` narrows it; writes
need a clinical (non observer) role in the task's workspace.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.serializers.tasks import (
    ChecklistItemSerializer,
    ChecklistToggleSerializer,
    CommentSerializer,
    TaskCreateSerializer,
    TaskListQuerySerializer,
    TaskUpdateSerializer,
)
from clinical.services import tasks as svc

from ..permissions import WRITE_ROLES, require_workspace, workspace_ids_for


def _writable_task(request, pk: int):
    task = svc.get_task(pk, workspace_ids_for(request.user))
    require_workspace(request.user, task.workspace_id, roles=WRITE_ROLES)
    return task


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tasks_list(request):
    if request.method == 'GET':
        q = TaskListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        filters = q.validated_data
        if filters.get('workspace_id'):
            require_workspace(request.user, filters['workspace_id'])
        items, pagination = svc.list_tasks(workspace_ids_for(request.user), filters)
        return Response({'ok': True, 'data': [svc.serialize_task(t) for t in items], 'pagination': pagination})

    s = TaskCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = dict(s.validated_data)
    workspace = require_workspace(request.user, vd.pop('workspace_id'), roles=WRITE_ROLES)
    checklist = vd.pop('checklist', [])
    task = svc.create_task(workspace, request.user, vd, checklist)
    return Response({'ok': True, 'data': svc.serialize_task(task, detail=True)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk: int):
    if request.method == 'GET':
        task = svc.get_task(pk, workspace_ids_for(request.user))
        return Response({'ok': True, 'data': svc.serialize_task(task, detail=True)})

    task = _writable_task(request, pk)
    if request.method == 'PATCH':
        s = TaskUpdateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        task = svc.update_task(task, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_task(task, detail=True)})

    svc.delete_task(task, request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_checklist(request, pk: int):
    task = _writable_task(request, pk)
    s = ChecklistItemSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    item = svc.add_checklist_item(task, request.user, s.validated_data['title'])
    return Response({'ok': True, 'data': svc.serialize_checklist_item(item)}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_checklist_toggle(request, pk: int, item_id: int):
    task = _writable_task(request, pk)
    s = ChecklistToggleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    item = svc.toggle_checklist_item(task, request.user, item_id, s.validated_data.get('is_completed'))
    return Response({'ok': True, 'data': svc.serialize_checklist_item(item)})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_comments(request, pk: int):
    if request.method == 'GET':
        task = svc.get_task(pk, workspace_ids_for(request.user))
        comments = task.comments.select_related('author').order_by('created_at', 'id')
        return Response({'ok': True, 'data': [svc.serialize_comment(c) for c in comments]})

    task = _writable_task(request, pk)
    s = CommentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    comment = svc.add_comment(task, request.user, s.validated_data['content'])
    return Response({'ok': True, 'data': svc.serialize_comment(comment)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_statistics(request):
    q = TaskListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    if q.validated_data.get('workspace_id'):
        require_workspace(request.user, q.validated_data['workspace_id'])
    stats = svc.task_statistics(workspace_ids_for(request.user), q.validated_data)
    return Response({'ok': True, 'data': stats})
