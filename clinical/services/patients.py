"""
Patient records inside a workspace: CRUD, clinical data entries, lab
tests and workflow transitions.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import bleach
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from clinical.models import Patient, PatientData, PatientTest, WorkspaceMember
from clinical.services.audit import log_action
from clinical.services.events import publish_workspace_event
from clinical.services.monitoring import check_vitals
from clinical.services.notification_helpers import (
    notify_critical_value,
    notify_patient_assignment,
    notify_patient_event,
    notify_workspace_about_patient,
)

logger = logging.getLogger(__name__)

User = get_user_model()

EDITABLE_FIELDS = ('name', 'age', 'gender', 'admission_date', 'category', 'workflow_state')


def _ts(value):
    return value.isoformat() if value else None


def serialize_patient(p: Patient) -> dict:
    return {
        'id': p.id,
        'workspace_id': p.workspace_id,
        'name': p.name,
        'age': p.age,
        'gender': p.gender or None,
        'admission_date': _ts(p.admission_date),
        'discharge_date': _ts(p.discharge_date),
        'workflow_state': p.workflow_state,
        'category': p.category or None,
        'assigned_to': p.assigned_to_id,
        'assigned_to_name': p.assigned_to.display_name if p.assigned_to_id else None,
        'created_by': p.created_by_id,
        'created_at': _ts(p.created_at),
        'updated_at': _ts(p.updated_at),
    }


def serialize_patient_data(d: PatientData) -> dict:
    return {
        'id': d.id,
        'patient_id': d.patient_id,
        'data_type': d.data_type,
        'content': d.content,
        'created_by': d.created_by_id,
        'created_at': _ts(d.created_at),
    }


def serialize_patient_test(t: PatientTest) -> dict:
    return {
        'id': t.id,
        'patient_id': t.patient_id,
        'test_type': t.test_type,
        'test_name': t.test_name,
        'results': t.results,
        'created_by': t.created_by_id,
        'created_at': _ts(t.created_at),
    }


def clinical_snapshot(patient: Patient) -> tuple[dict, list[dict], list[dict]]:
    """Patient, data and tests as plain mappings for the auto-fill engine."""
    data = [serialize_patient_data(d) for d in patient.data.all()]
    tests = [serialize_patient_test(t) for t in patient.tests.all()]
    return serialize_patient(patient), data, tests


def _clean(value: Optional[str]) -> str:
    return bleach.clean((value or '').strip(), strip=True)


def _member_user(workspace_id, user_id):
    if user_id is None:
        return None
    member = WorkspaceMember.objects.select_related('user').filter(
        workspace_id=workspace_id, user_id=user_id, status='active'
    ).first()
    if member is None:
        raise ValidationError({'assigned_to': 'assignee must be an active member of the workspace'})
    return member.user


def list_patients(workspace, filters: Optional[Mapping[str, Any]] = None):
    filters = filters or {}
    qs = Patient.objects.select_related('assigned_to').filter(workspace=workspace, deleted_at__isnull=True)
    if filters.get('workflow_state'):
        qs = qs.filter(workflow_state=filters['workflow_state'])
    if filters.get('assigned_to'):
        qs = qs.filter(assigned_to_id=filters['assigned_to'])
    if filters.get('category'):
        qs = qs.filter(category=filters['category'])
    if not filters.get('include_discharged'):
        qs = qs.filter(discharge_date__isnull=True)
    if filters.get('search'):
        qs = qs.filter(Q(name__icontains=filters['search']) | Q(category__icontains=filters['search']))
    return qs.order_by('-admission_date', '-id')


def create_patient(workspace, user, values: Mapping[str, Any]) -> Patient:
    fields = {f: values[f] for f in EDITABLE_FIELDS if values.get(f) is not None}
    fields['name'] = _clean(fields.get('name'))
    if not fields['name']:
        raise ValidationError({'name': 'name is required'})
    if 'category' in fields:
        fields['category'] = _clean(fields['category'])
    assignee = _member_user(workspace.id, values.get('assigned_to'))
    with transaction.atomic():
        patient = Patient.objects.create(workspace=workspace, created_by=user, assigned_to=assignee, **fields)
        notify_workspace_about_patient(patient, 'patient_created', exclude_user=user)
        if assignee is not None and assignee.id != user.id:
            notify_patient_assignment(assignee, user.display_name, patient)
    log_action(user=user, action='patient_create', object_type='patient', object_id=patient.id)
    publish_workspace_event(workspace.id, 'patient.created', serialize_patient(patient))
    return patient


def update_patient(patient: Patient, user, values: Mapping[str, Any]) -> Patient:
    if 'workflow_state' in values and patient.discharge_date is not None:
        raise ValidationError({'workflow_state': 'patient is already discharged'})
    changed = []
    for f in EDITABLE_FIELDS:
        if f not in values:
            continue
        value = values[f]
        if f in ('name', 'category'):
            value = _clean(value)
        if f == 'name' and not value:
            raise ValidationError({'name': 'name cannot be blank'})
        if f == 'gender' and value is None:
            value = ''
        setattr(patient, f, value)
        changed.append(f)

    new_assignee = None
    if 'assigned_to' in values and values['assigned_to'] != patient.assigned_to_id:
        new_assignee = _member_user(patient.workspace_id, values['assigned_to'])
        patient.assigned_to = new_assignee
        changed.append('assigned_to')

    if not changed:
        return patient
    with transaction.atomic():
        patient.save()
        if new_assignee is not None and new_assignee.id != user.id:
            notify_patient_assignment(new_assignee, user.display_name, patient)
        elif new_assignee is None and patient.assigned_to_id and patient.assigned_to_id != user.id:
            notify_patient_event(patient.assigned_to, 'patient_updated', patient)
    log_action(user=user, action='patient_update', object_type='patient', object_id=patient.id,
               detail={'fields': changed})
    publish_workspace_event(patient.workspace_id, 'patient.updated', serialize_patient(patient))
    return patient


def delete_patient(patient: Patient, user) -> None:
    patient.deleted_at = timezone.now()
    patient.save(update_fields=['deleted_at', 'updated_at'])
    log_action(user=user, action='patient_delete', object_type='patient', object_id=patient.id)
    publish_workspace_event(patient.workspace_id, 'patient.deleted', {'id': patient.id})


def set_workflow_state(patient: Patient, user, state: str) -> Patient:
    if state not in dict(Patient.WORKFLOW_CHOICES):
        raise ValidationError({'workflow_state': f'unknown workflow state {state!r}'})
    if state == 'discharged':
        return discharge_patient(patient, user)
    if patient.discharge_date is not None:
        raise ValidationError({'workflow_state': 'patient is already discharged'})
    previous = patient.workflow_state
    patient.workflow_state = state
    patient.save(update_fields=['workflow_state', 'updated_at'])
    log_action(user=user, action='patient_workflow', object_type='patient', object_id=patient.id,
               detail={'from': previous, 'to': state})
    publish_workspace_event(patient.workspace_id, 'patient.updated', serialize_patient(patient))
    return patient


def discharge_patient(patient: Patient, user, when=None) -> Patient:
    if patient.discharge_date is not None:
        raise ValidationError({'discharge_date': 'patient is already discharged'})
    patient.discharge_date = when or timezone.now()
    patient.workflow_state = 'discharged'
    with transaction.atomic():
        patient.save(update_fields=['discharge_date', 'workflow_state', 'updated_at'])
        notify_workspace_about_patient(patient, 'patient_discharged', exclude_user=user)
    log_action(user=user, action='patient_discharge', object_type='patient', object_id=patient.id)
    publish_workspace_event(patient.workspace_id, 'patient.discharged', serialize_patient(patient))
    logger.info('Patient %s discharged', patient.id,
                extra={'patient_id': patient.id, 'workspace_id': patient.workspace_id})
    return patient


def add_patient_data(patient: Patient, user, data_type: str, content: Mapping[str, Any]) -> tuple[PatientData, list]:
    """Store one clinical record; vital signs are run through the threshold checks.

    Returns the record and the clinical alerts it raised.
    """
    with transaction.atomic():
        record = PatientData.objects.create(
            patient=patient, data_type=data_type, content=dict(content or {}), created_by=user
        )
        alerts = check_vitals(patient, record.content, user) if data_type == 'vital_signs' else []
    log_action(user=user, action='patient_data_add', object_type='patient', object_id=patient.id,
               detail={'data_type': data_type, 'record_id': record.id})
    publish_workspace_event(patient.workspace_id, 'patient.data_added', serialize_patient_data(record))
    return record, alerts


def list_patient_data(patient: Patient, data_type: Optional[str] = None):
    qs = patient.data.all()
    if data_type:
        qs = qs.filter(data_type=data_type)
    return qs.order_by('-created_at', '-id')


CRITICAL_FLAGS = {'critical', 'critical_high', 'critical_low'}


def critical_lab_results(results: Mapping[str, Any]) -> list[tuple[str, Mapping[str, Any]]]:
    """Entries written as ``{"value": .., "unit": .., "flag": "critical"}`` (or ``"critical": true``)."""
    flagged = []
    for name, entry in (results or {}).items():
        if not isinstance(entry, Mapping):
            continue
        if entry.get('critical') is True or str(entry.get('flag') or '').lower() in CRITICAL_FLAGS:
            flagged.append((name, entry))
    return flagged


def _lab_value(entry: Mapping[str, Any]) -> str:
    unit = entry.get('unit')
    return f"{entry.get('value')} {unit}" if unit else str(entry.get('value'))


def add_patient_test(patient: Patient, user, test_type: str, test_name: str,
                     results: Mapping[str, Any]) -> PatientTest:
    """Store a test; laboratory results flagged critical notify the assigned clinician."""
    with transaction.atomic():
        test = PatientTest.objects.create(
            patient=patient, test_type=test_type, test_name=_clean(test_name),
            results=dict(results or {}), created_by=user,
        )
        if test_type == 'laboratory' and patient.assigned_to_id and patient.assigned_to_id != user.id:
            for name, entry in critical_lab_results(test.results):
                notify_critical_value(patient.assigned_to, patient, name, _lab_value(entry),
                                      entry.get('reference_range') or entry.get('normal_range') or 'n/a')
    log_action(user=user, action='patient_test_add', object_type='patient', object_id=patient.id,
               detail={'test_type': test_type, 'test_id': test.id})
    publish_workspace_event(patient.workspace_id, 'patient.test_added', serialize_patient_test(test))
    return test


def list_patient_tests(patient: Patient, test_type: Optional[str] = None):
    qs = patient.tests.all()
    if test_type:
        qs = qs.filter(test_type=test_type)
    return qs.order_by('-created_at', '-id')
