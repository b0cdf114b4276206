"""
Notification inbox views for the current user.

Notifications are always scoped to ``request.user``; another user's
notification id answers 404.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.serializers.notifications import NotificationListQuerySerializer, PreferencesSerializer
from clinical.services import notifications as svc


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def notifications_list(request):
    if request.method == 'DELETE':
        deleted = svc.clear_all(request.user)
        return Response({'ok': True, 'data': {'deleted': deleted}})

    q = NotificationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    items = svc.list_notifications(request.user, q.validated_data)
    return Response({'ok': True, 'data': [svc.serialize_notification(n) for n in items]})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def notification_detail(request, pk: int):
    svc.delete_notification(request.user, pk)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_read(request, pk: int):
    n = svc.mark_as_read(request.user, pk)
    return Response({'ok': True, 'data': svc.serialize_notification(n)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notifications_read_all(request):
    updated = svc.mark_all_as_read(request.user)
    return Response({'ok': True, 'data': {'updated': updated}})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notifications_stats(request):
    return Response({'ok': True, 'data': svc.get_stats(request.user)})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def notification_preferences(request):
    if request.method == 'GET':
        prefs = svc.get_preferences(request.user)
        return Response({'ok': True, 'data': svc.serialize_preferences(prefs)})

    s = PreferencesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    prefs = svc.update_preferences(request.user, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_preferences(prefs)})
