"""
Monitoring configuration and clinical alert views.

``/api/patients/<id>/monitoring`` reads (``data: null`` when nothing is
configured), creates (409 on a second create) and updates the per-patient
configuration.  Alerts are listed per workspace or patient and moved
through acknowledge / resolve / dismiss.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.models import ClinicalAlert
from clinical.serializers.monitoring import (
    AlertActionSerializer,
    AlertListQuerySerializer,
    AlertStatsQuerySerializer,
    MonitoringConfigSerializer,
    VitalCheckSerializer,
)
from clinical.services import monitoring as svc

from ..permissions import WRITE_ROLES, require_patient, require_workspace, workspace_ids_for


@api_view(['GET', 'POST', 'PUT'])
@permission_classes([IsAuthenticated])
def patient_monitoring(request, pk: int):
    if request.method == 'GET':
        patient = require_patient(request.user, pk)
        config = svc.get_config(patient)
        return Response({'ok': True, 'data': svc.serialize_config(config) if config else None})

    patient = require_patient(request.user, pk, write=True)
    s = MonitoringConfigSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    if request.method == 'POST':
        config = svc.create_config(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_config(config)}, status=status.HTTP_201_CREATED)
    config = svc.update_config(patient, request.user, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_config(config)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def patient_check_vitals(request, pk: int):
    """Check a set of vitals without storing them as a record."""
    patient = require_patient(request.user, pk, write=True)
    s = VitalCheckSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    alerts = svc.check_vitals(patient, s.validated_data['vital_signs'], request.user)
    return Response({'ok': True, 'data': {
        'alerts_created': len(alerts),
        'alerts': [svc.serialize_alert(a) for a in alerts],
    }})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def alerts_list(request):
    q = AlertListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    f = q.validated_data
    qs = ClinicalAlert.objects.filter(workspace_id__in=workspace_ids_for(request.user))
    if f.get('workspace_id'):
        require_workspace(request.user, f['workspace_id'])
        qs = qs.filter(workspace_id=f['workspace_id'])
    if f.get('patient_id'):
        require_patient(request.user, f['patient_id'])
        qs = qs.filter(patient_id=f['patient_id'])
    if f.get('status'):
        qs = qs.filter(status=f['status'])
    if f.get('severity'):
        qs = qs.filter(severity=f['severity'])
    alerts = qs.order_by('-urgency_level', '-created_at', '-id')[:f.get('limit') or 50]
    return Response({'ok': True, 'data': [svc.serialize_alert(a) for a in alerts]})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def alert_action(request, pk: int):
    alert = svc.get_alert(pk, workspace_ids_for(request.user))
    require_workspace(request.user, alert.workspace_id, roles=WRITE_ROLES)
    s = AlertActionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    action, notes = s.validated_data['action'], s.validated_data['notes']
    if action == 'acknowledge':
        alert = svc.acknowledge_alert(alert, request.user)
    elif action == 'resolve':
        alert = svc.resolve_alert(alert, request.user, notes)
    else:
        alert = svc.dismiss_alert(alert, request.user, notes)
    return Response({'ok': True, 'data': svc.serialize_alert(alert)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def alert_statistics(request):
    q = AlertStatsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    workspace = require_workspace(request.user, q.validated_data['workspace_id'])
    return Response({'ok': True, 'data': svc.alert_statistics(workspace, q.validated_data['period_hours'])})
