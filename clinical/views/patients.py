"""
Patient views.

Patients live inside a workspace; listing and creation go through
``/api/workspaces/<id>/patients`` and every other endpoint addresses a
patient directly and checks the caller's membership of its workspace.
Observers may read but not write.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinical.serializers.patients import (
    DischargeSerializer,
    PatientDataSerializer,
    PatientListQuerySerializer,
    PatientSerializer,
    PatientTestSerializer,
    RecordQuerySerializer,
    WorkflowSerializer,
)
from clinical.services import patients as svc
from clinical.services.monitoring import serialize_alert
from clinical.services.tasks import paginate

from ..permissions import WRITE_ROLES, require_patient, require_workspace


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def workspace_patients(request, workspace_id: int):
    if request.method == 'GET':
        workspace = require_workspace(request.user, workspace_id)
        q = PatientListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        qs = svc.list_patients(workspace, q.validated_data)
        items, pagination = paginate(qs, q.validated_data.get('page'), q.validated_data.get('limit'))
        return Response({'ok': True, 'data': [svc.serialize_patient(p) for p in items], 'pagination': pagination})

    workspace = require_workspace(request.user, workspace_id, roles=WRITE_ROLES)
    s = PatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = svc.create_patient(workspace, request.user, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_patient(patient)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def patient_detail(request, pk: int):
    if request.method == 'GET':
        patient = require_patient(request.user, pk)
        return Response({'ok': True, 'data': svc.serialize_patient(patient)})

    patient = require_patient(request.user, pk, write=True)
    if request.method == 'PATCH':
        s = PatientSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        patient = svc.update_patient(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_patient(patient)})

    svc.delete_patient(patient, request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def patient_workflow(request, pk: int):
    patient = require_patient(request.user, pk, write=True)
    s = WorkflowSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = svc.set_workflow_state(patient, request.user, s.validated_data['workflow_state'])
    return Response({'ok': True, 'data': svc.serialize_patient(patient)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def patient_discharge(request, pk: int):
    patient = require_patient(request.user, pk, write=True)
    s = DischargeSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient = svc.discharge_patient(patient, request.user, s.validated_data.get('discharge_date'))
    return Response({'ok': True, 'data': svc.serialize_patient(patient)})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_data(request, pk: int):
    """Clinical records of a patient; recording vital signs returns the alerts they raised."""
    if request.method == 'GET':
        patient = require_patient(request.user, pk)
        q = RecordQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        records = svc.list_patient_data(patient, q.validated_data.get('type'))
        return Response({'ok': True, 'data': [svc.serialize_patient_data(d) for d in records]})

    patient = require_patient(request.user, pk, write=True)
    if patient.discharge_date is not None:
        raise ValidationError({'patient': 'cannot add records to a discharged patient'})
    s = PatientDataSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record, alerts = svc.add_patient_data(patient, request.user, s.validated_data['data_type'],
                                          s.validated_data['content'])
    payload = svc.serialize_patient_data(record)
    payload['alerts'] = [serialize_alert(a) for a in alerts]
    return Response({'ok': True, 'data': payload}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_tests(request, pk: int):
    if request.method == 'GET':
        patient = require_patient(request.user, pk)
        q = RecordQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        tests = svc.list_patient_tests(patient, q.validated_data.get('type'))
        return Response({'ok': True, 'data': [svc.serialize_patient_test(t) for t in tests]})

    patient = require_patient(request.user, pk, write=True)
    if patient.discharge_date is not None:
        raise ValidationError({'patient': 'cannot add records to a discharged patient'})
    s = PatientTestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    test = svc.add_patient_test(patient, request.user, vd['test_type'], vd['test_name'], vd['results'])
    return Response({'ok': True, 'data': svc.serialize_patient_test(test)}, status=status.HTTP_201_CREATED)
