"""
Typed shortcuts over :func:`create_notification` for each kind of event.

They fix the title, message, severity, ``data`` payload and the front-end
``action_url`` so that callers only pass the domain objects involved.
"""
from __future__ import annotations

from typing import Iterable, Optional

from clinical.models import Patient, Task, Workspace
from clinical.services.notifications import create_notification, notify_workspace_members

PATIENT_EVENT_TITLES = {
    'patient_created': 'New patient added',
    'patient_updated': 'Patient updated',
    'patient_assigned': 'Patient assigned',
    'patient_discharged': 'Patient discharged',
}

PATIENT_EVENT_MESSAGES = {
    'patient_created': 'New patient added: {name}',
    'patient_updated': 'Patient details updated: {name}',
    'patient_assigned': 'Patient assigned: {name}',
    'patient_discharged': 'Patient discharged: {name}',
}

TASK_EVENTS = {
    # event: (type, title, severity)
    'assigned': ('task_assigned', 'New task assigned', 'medium'),
    'due': ('task_due', 'Task due soon', 'high'),
    'completed': ('task_completed', 'Task completed', 'info'),
}

MENTION_PREVIEW_LENGTH = 100


def patient_url(patient_id, tab: Optional[str] = None) -> str:
    url = f'/dashboard/patients/{patient_id}'
    return f'{url}?tab={tab}' if tab else url


def workspace_url(workspace_id, tab: str) -> str:
    return f'/dashboard/workspace/{workspace_id}?tab={tab}'


def patient_event_title(type: str) -> str:
    return PATIENT_EVENT_TITLES.get(type, 'Patient notification')


def patient_event_message(type: str, patient_name: str) -> str:
    template = PATIENT_EVENT_MESSAGES.get(type)
    return template.format(name=patient_name) if template else patient_name


def _patient_data(patient: Patient) -> dict:
    return {'patient_id': patient.id, 'patient_name': patient.name}


def notify_patient_event(user, type: str, patient: Patient, message: Optional[str] = None, severity: str = 'info'):
    return create_notification(
        user, type, patient_event_title(type),
        message=message or patient_event_message(type, patient.name),
        severity=severity,
        related_patient=patient,
        related_workspace=patient.workspace,
        action_url=patient_url(patient.id),
        data=_patient_data(patient),
    )


def notify_mention(mentioned_user, mentioned_by_name: str, note_id: str, note_content: str,
                   workspace: Workspace, patient: Optional[Patient] = None, severity: str = 'medium'):
    action_url = patient_url(patient.id, 'notes') if patient else workspace_url(workspace.id, 'notes')
    return create_notification(
        mentioned_user, 'mention', f'{mentioned_by_name} mentioned you',
        message=(note_content or '')[:MENTION_PREVIEW_LENGTH],
        severity=severity,
        related_note_id=str(note_id),
        related_patient=patient,
        related_workspace=workspace,
        action_url=action_url,
        data={'mentioned_by': mentioned_by_name, 'note_id': str(note_id)},
    )


def notify_patient_assignment(assigned_user, assigned_by_name: str, patient: Patient,
                              assignment_type: str = 'primary'):
    return create_notification(
        assigned_user, 'patient_assigned', 'Patient assigned',
        message=f'{assigned_by_name} assigned a patient to you: {patient.name}',
        severity='medium',
        related_patient=patient,
        related_workspace=patient.workspace,
        action_url=patient_url(patient.id),
        data={**_patient_data(patient), 'assigned_by': assigned_by_name, 'assignment_type': assignment_type},
    )


def notify_ai_alert(user, patient: Patient, alert_type: str, alert_message: str, severity: str,
                    recommendations: Optional[Iterable[str]] = None, alert_id=None):
    data = {**_patient_data(patient), 'alert_type': alert_type, 'recommendations': list(recommendations or [])}
    if alert_id is not None:
        data['alert_id'] = alert_id
    return create_notification(
        user, 'ai_alert', f'Clinical alert: {patient.name}',
        message=alert_message,
        severity=severity,
        related_patient=patient,
        related_workspace=patient.workspace,
        action_url=patient_url(patient.id, 'ai'),
        data=data,
    )


def notify_critical_value(user, patient: Patient, value_type: str, value: str, normal_range: str):
    return create_notification(
        user, 'critical_value', f'Critical value: {patient.name}',
        message=f'{value_type}: {value} (normal: {normal_range})',
        severity='critical',
        related_patient=patient,
        related_workspace=patient.workspace,
        action_url=patient_url(patient.id),
        data={**_patient_data(patient), 'value_type': value_type, 'value': value, 'normal_range': normal_range},
    )


def notify_task(user, task: Task, event: str, assigned_by_name: Optional[str] = None):
    """``event`` is one of ``assigned``, ``due``, ``completed``."""
    type, title, severity = TASK_EVENTS[event]
    if task.patient_id:
        action_url = patient_url(task.patient_id, 'tasks')
    else:
        action_url = workspace_url(task.workspace_id, 'tasks')
    return create_notification(
        user, type, title,
        message=task.title,
        severity=severity,
        related_patient=task.patient,
        related_workspace=task.workspace,
        action_url=action_url,
        data={
            'task_id': task.id,
            'task_title': task.title,
            'task_type': event,
            'due_date': task.due_date.isoformat() if task.due_date else None,
            'assigned_by': assigned_by_name,
        },
    )


def notify_workspace_invite(user, workspace: Workspace, invited_by_name: str, role: str):
    return create_notification(
        user, 'workspace_invite', 'Workspace invitation',
        message=f'{invited_by_name} invited you to the {workspace.name} workspace',
        severity='medium',
        related_workspace=workspace,
        action_url=f'/dashboard/workspace/{workspace.id}/invite',
        data={
            'workspace_id': workspace.id,
            'workspace_name': workspace.name,
            'invited_by': invited_by_name,
            'role': role,
        },
    )


def notify_workspace_about_patient(patient: Patient, type: str, message: Optional[str] = None,
                                   severity: str = 'info', exclude_user=None) -> int:
    return notify_workspace_members(
        patient.workspace, type, patient_event_title(type),
        exclude_user=exclude_user,
        message=message or patient_event_message(type, patient.name),
        severity=severity,
        related_patient=patient,
        action_url=patient_url(patient.id),
        data=_patient_data(patient),
    )
