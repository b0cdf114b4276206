"""
Clinical calculator views: auto-fill from patient records, scoring with
persistence, and result history.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.serializers.calculators import AutoFillQuerySerializer, CalculateSerializer, HistoryQuerySerializer
from clinical.services import calculators as svc

from ..permissions import require_patient, require_workspace, workspace_ids_for


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def calculator_auto_fill(request):
    q = AutoFillQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    patient = require_patient(request.user, q.validated_data['patient_id'])
    data = svc.auto_fill_for_patient(patient, q.validated_data['calculator_type'])
    return Response({'ok': True, 'data': data})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def calculators(request):
    if request.method == 'GET':
        q = HistoryQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        filters = q.validated_data
        if filters.get('workspace_id'):
            require_workspace(request.user, filters['workspace_id'])
        if filters.get('patient_id'):
            require_patient(request.user, filters['patient_id'])
        results = svc.result_history(workspace_ids_for(request.user), filters)
        return Response({'ok': True, 'data': [svc.serialize_result(r) for r in results]})

    s = CalculateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    patient = None
    if vd.get('patient_id'):
        patient = require_patient(request.user, vd['patient_id'])
        if vd.get('workspace_id') and vd['workspace_id'] != patient.workspace_id:
            raise ValidationError({'patient_id': 'patient does not belong to this workspace'})
        workspace = patient.workspace
    else:
        workspace = require_workspace(request.user, vd['workspace_id'])
    record, details = svc.score_and_save(request.user, workspace, vd['calculator_type'], vd['input_data'], patient)
    return Response({'ok': True, 'data': svc.serialize_result(record, details)}, status=status.HTTP_201_CREATED)
