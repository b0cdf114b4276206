"""
Shift handoffs: CRUD, acknowledgement and draft generation.

:func:`generate_handoff` always assembles a deterministic draft from the
workspace's active patients (latest vitals and labs, open tasks, active
alerts).  When ``OPENAI_API_KEY`` is configured the narrative summary is
then written by a chat-completions call; failures of that call surface
as :class:`HandoffGenerationError` and nothing is saved.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, Optional

import requests
from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from clinical.calculators.auto_fill import extract_lab_results, extract_vital_signs
from clinical.exceptions import HandoffGenerationError
from clinical.models import (
    ClinicalAlert,
    Handoff,
    HandoffChecklistItem,
    HandoffPatient,
    Patient,
    Task,
    WorkspaceMember,
)
from clinical.services.audit import log_action
from clinical.services.events import publish_workspace_event
from clinical.services.patients import serialize_patient_data, serialize_patient_test

logger = logging.getLogger(__name__)

MAX_PATIENTS = 50
MAX_TASKS_PER_PATIENT = 10

SYSTEM_PROMPT = (
    'You are an experienced clinical assistant writing a shift handoff for physicians. '
    'Prioritise patient safety and continuity of care. Highlight critical findings and '
    'anything that needs action during the next shift. Reply with a JSON object holding '
    '"summary" (3-4 sentences over all patients) and "patient_summaries", a list of '
    '{"patient_id", "summary", "critical_items", "recent_changes"}.'
)

UPDATABLE_FIELDS = ('status', 'summary', 'content')


def _ts(value):
    return value.isoformat() if value else None


def serialize_handoff(h: Handoff, *, detail: bool = False) -> dict:
    data = {
        'id': h.id,
        'workspace_id': h.workspace_id,
        'from_user': h.from_user_id,
        'to_user': h.to_user_id,
        'status': h.status,
        'summary': h.summary,
        'ai_generated': h.ai_generated,
        'acknowledged_by': h.acknowledged_by_id,
        'acknowledged_at': _ts(h.acknowledged_at),
        'created_at': _ts(h.created_at),
        'updated_at': _ts(h.updated_at),
    }
    if detail:
        data['content'] = h.content
        data['patients'] = [
            {
                'patient_id': hp.patient_id,
                'patient_name': hp.patient.name,
                'summary': hp.summary,
                'priority': hp.priority,
                'notes': hp.notes,
            }
            for hp in h.patients.select_related('patient').order_by('id')
        ]
        data['checklist'] = [
            {
                'id': item.id,
                'patient_id': item.patient_id,
                'title': item.title,
                'priority': item.priority,
                'category': item.category,
                'is_completed': item.is_completed,
                'completed_by': item.completed_by_id,
                'completed_at': _ts(item.completed_at),
            }
            for item in h.checklist_items.order_by('id')
        ]
    return data


def _member(workspace_id, user_id, field: str):
    member = WorkspaceMember.objects.select_related('user').filter(
        workspace_id=workspace_id, user_id=user_id, status='active'
    ).first()
    if member is None:
        raise ValidationError({field: 'user must be an active member of the workspace'})
    return member.user


# ---------------------------------------------------------------------
# Draft generation
# ---------------------------------------------------------------------
def _patient_priority(alerts: list[ClinicalAlert], overdue: int) -> str:
    severities = {a.severity for a in alerts}
    if 'critical' in severities:
        return 'critical'
    if 'high' in severities or overdue:
        return 'high'
    if alerts:
        return 'medium'
    return 'low'


def collect_patient_context(patient: Patient, now=None) -> dict:
    now = now or timezone.now()
    data = [serialize_patient_data(d) for d in patient.data.all()]
    tests = [serialize_patient_test(t) for t in patient.tests.all()]
    tasks = list(
        patient.tasks.filter(deleted_at__isnull=True, status__in=Task.OPEN_STATUSES)
        .order_by('due_date', '-created_at')[:MAX_TASKS_PER_PATIENT]
    )
    alerts = list(patient.alerts.filter(status__in=('active', 'acknowledged')).order_by('-created_at'))
    overdue = [t for t in tasks if t.due_date and t.due_date < now]
    return {
        'patient_id': patient.id,
        'patient_name': patient.name,
        'age': patient.age,
        'gender': patient.gender or None,
        'workflow_state': patient.workflow_state,
        'category': patient.category or None,
        'admission_date': _ts(patient.admission_date),
        'latest_vital_signs': extract_vital_signs(data),
        'latest_lab_results': extract_lab_results(tests),
        'pending_tasks': [
            {'id': t.id, 'title': t.title, 'priority': t.priority, 'status': t.status,
             'due_date': _ts(t.due_date), 'is_overdue': t in overdue}
            for t in tasks
        ],
        'active_alerts': [
            {'id': a.id, 'severity': a.severity, 'title': a.title, 'description': a.description}
            for a in alerts
        ],
        'priority': _patient_priority(alerts, len(overdue)),
        '_critical_alerts': [a for a in alerts if a.severity == 'critical'],
        '_overdue_tasks': overdue,
    }


def _patient_line(ctx: Mapping[str, Any]) -> str:
    parts = [f"{ctx['patient_name']} ({ctx['workflow_state'].replace('_', ' ')})"]
    if ctx['active_alerts']:
        parts.append(f"{len(ctx['active_alerts'])} active alert(s)")
    if ctx['pending_tasks']:
        parts.append(f"{len(ctx['pending_tasks'])} open task(s)")
    return ', '.join(parts)


def build_draft(contexts: list[dict]) -> dict:
    """Deterministic handoff content built from the patient contexts."""
    critical = sum(1 for c in contexts if c['priority'] == 'critical')
    discharges = sum(1 for c in contexts if c['workflow_state'] == 'discharge_planning')
    checklist = []
    for ctx in contexts:
        for alert in ctx['_critical_alerts']:
            checklist.append({
                'patient_id': ctx['patient_id'],
                'title': f"Review critical alert: {alert.title} ({ctx['patient_name']})",
                'priority': 'critical',
                'category': 'patient_care',
            })
        for task in ctx['_overdue_tasks']:
            checklist.append({
                'patient_id': ctx['patient_id'],
                'title': f"Overdue task: {task.title} ({ctx['patient_name']})",
                'priority': 'high',
                'category': 'follow_up',
            })
    patients = [{k: v for k, v in c.items() if not k.startswith('_')} for c in contexts]
    for p, ctx in zip(patients, contexts):
        p['summary'] = _patient_line(ctx)
    summary = (
        f"{len(contexts)} active patient(s), {critical} critical, "
        f"{discharges} pending discharge."
    )
    return {
        'summary': summary,
        'patients': patients,
        'overall_statistics': {
            'total_patients': len(contexts),
            'critical_patients': critical,
            'stable_patients': sum(1 for c in contexts if c['priority'] == 'low'),
            'pending_discharges': discharges,
        },
        'checklist_items': checklist,
    }


def request_ai_summary(draft: Mapping[str, Any], from_user, to_user) -> dict:
    """Ask the chat-completions endpoint for a narrative summary of ``draft``."""
    prompt = (
        f"Handing over: {from_user.display_name} -> {to_user.display_name}\n"
        f"Total patients: {draft['overall_statistics']['total_patients']}\n\n"
        f"Patient data:\n{json.dumps(draft['patients'], ensure_ascii=False, default=str)}"
    )
    url = f"{settings.OPENAI_BASE_URL.rstrip('/')}/chat/completions"
    body = {
        'model': settings.OPENAI_MODEL,
        'messages': [
            {'role': 'system', 'content': SYSTEM_PROMPT},
            {'role': 'user', 'content': prompt},
        ],
        'response_format': {'type': 'json_object'},
        'temperature': 0.3,
    }
    headers = {'Authorization': f'Bearer {settings.OPENAI_API_KEY}'}
    try:
        r = requests.post(url, json=body, headers=headers, timeout=settings.OPENAI_TIMEOUT)
        r.raise_for_status()
        message = r.json()['choices'][0]['message']['content']
        result = json.loads(message)
    except requests.RequestException as exc:
        logger.error('Handoff generation request failed: %s', exc)
        raise HandoffGenerationError()
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error('Unexpected handoff generation response: %s', exc)
        raise HandoffGenerationError('Text generation service returned an unreadable response')
    if not isinstance(result, dict):
        raise HandoffGenerationError('Text generation service returned an unreadable response')
    return result


def _merge_ai(draft: dict, ai: Mapping[str, Any]) -> dict:
    if ai.get('summary'):
        draft['summary'] = str(ai['summary'])
    by_id = {}
    for item in ai.get('patient_summaries') or []:
        if isinstance(item, Mapping) and item.get('patient_id') is not None:
            by_id[str(item['patient_id'])] = item
    for p in draft['patients']:
        item = by_id.get(str(p['patient_id']))
        if item is None:
            continue
        if item.get('summary'):
            p['summary'] = str(item['summary'])
        for key in ('critical_items', 'recent_changes'):
            if item.get(key):
                p[key] = item[key]
    return draft


def generate_handoff(workspace, from_user, to_user, patient_ids: Optional[Iterable[int]] = None,
                     requested_by=None) -> Handoff:
    to_user = _member(workspace.id, getattr(to_user, 'id', to_user), 'to_user')
    from_user = _member(workspace.id, getattr(from_user, 'id', from_user), 'from_user')
    qs = Patient.objects.filter(workspace=workspace, deleted_at__isnull=True, discharge_date__isnull=True)
    if patient_ids:
        qs = qs.filter(id__in=list(patient_ids))
    patients = list(qs.order_by('-created_at')[:MAX_PATIENTS])
    if not patients:
        raise NotFound('No active patients found')

    contexts = [collect_patient_context(p) for p in patients]
    draft = build_draft(contexts)
    ai_generated = False
    if settings.OPENAI_API_KEY:
        draft = _merge_ai(draft, request_ai_summary(draft, from_user, to_user))
        ai_generated = True

    checklist = draft.pop('checklist_items')
    with transaction.atomic():
        handoff = Handoff.objects.create(
            workspace=workspace,
            from_user=from_user,
            to_user=to_user,
            status='draft',
            summary=draft['summary'],
            content=draft,
            ai_generated=ai_generated,
        )
        HandoffPatient.objects.bulk_create([
            HandoffPatient(handoff=handoff, patient_id=p['patient_id'], summary=p['summary'], priority=p['priority'])
            for p in draft['patients']
        ])
        HandoffChecklistItem.objects.bulk_create([
            HandoffChecklistItem(handoff=handoff, patient_id=c['patient_id'], title=c['title'][:255],
                                 priority=c['priority'], category=c['category'])
            for c in checklist
        ])
    logger.info('Generated handoff %s with %s patients (ai=%s)', handoff.id, len(patients), ai_generated,
                extra={'workspace_id': workspace.id})
    log_action(user=requested_by or from_user, action='handoff_generate', object_type='handoff',
               object_id=handoff.id, detail={'patients': len(patients), 'ai_generated': ai_generated})
    publish_workspace_event(workspace.id, 'handoff.created', serialize_handoff(handoff))
    return handoff


# ---------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------
def list_handoffs(workspace_ids, user, filters: Mapping[str, Any]):
    qs = Handoff.objects.filter(workspace_id__in=workspace_ids)
    if filters.get('workspace_id'):
        qs = qs.filter(workspace_id=filters['workspace_id'])
    if filters.get('status'):
        qs = qs.filter(status=filters['status'])
    if filters.get('mine'):
        qs = qs.filter(Q(from_user=user) | Q(to_user=user))
    return qs.order_by('-created_at', '-id')


def get_handoff(handoff_id, workspace_ids) -> Handoff:
    handoff = Handoff.objects.filter(id=handoff_id, workspace_id__in=workspace_ids).first()
    if handoff is None:
        raise NotFound('handoff not found')
    return handoff


def create_handoff(workspace, user, values: Mapping[str, Any]) -> Handoff:
    to_user = _member(workspace.id, values['to_user'], 'to_user')
    patient_entries = values.get('patients') or []
    checklist = values.get('checklist') or []
    ids = [e['patient_id'] for e in patient_entries]
    checklist_ids = [c['patient_id'] for c in checklist if c.get('patient_id') is not None]
    known = set(Patient.objects.filter(workspace=workspace, id__in=ids + checklist_ids, deleted_at__isnull=True)
                .values_list('id', flat=True))
    missing = [pid for pid in ids if pid not in known]
    if missing:
        raise ValidationError({'patients': f'unknown patients: {missing}'})
    missing = [pid for pid in checklist_ids if pid not in known]
    if missing:
        raise ValidationError({'checklist': f'unknown patients: {missing}'})
    with transaction.atomic():
        handoff = Handoff.objects.create(
            workspace=workspace,
            from_user=user,
            to_user=to_user,
            status=values.get('status') or 'draft',
            summary=values.get('summary') or '',
            content=values.get('content') or {},
        )
        HandoffPatient.objects.bulk_create([
            HandoffPatient(handoff=handoff, patient_id=e['patient_id'], summary=e.get('summary') or '',
                           priority=e.get('priority') or 'medium', notes=e.get('notes') or '')
            for e in patient_entries
        ])
        HandoffChecklistItem.objects.bulk_create([
            HandoffChecklistItem(handoff=handoff, patient_id=c.get('patient_id'), title=c['title'],
                                 priority=c.get('priority') or 'medium', category=c.get('category') or 'patient_care')
            for c in checklist
        ])
    log_action(user=user, action='handoff_create', object_type='handoff', object_id=handoff.id)
    publish_workspace_event(workspace.id, 'handoff.created', serialize_handoff(handoff))
    return handoff


def update_handoff(handoff: Handoff, user, values: Mapping[str, Any]) -> Handoff:
    fields = [f for f in UPDATABLE_FIELDS if f in values]
    for f in fields:
        setattr(handoff, f, values[f])
    if fields:
        handoff.save()
        log_action(user=user, action='handoff_update', object_type='handoff', object_id=handoff.id,
                   detail={'fields': fields})
        publish_workspace_event(handoff.workspace_id, 'handoff.updated', serialize_handoff(handoff))
    return handoff


def delete_handoff(handoff: Handoff, user) -> None:
    hid, workspace_id = handoff.id, handoff.workspace_id
    handoff.delete()
    log_action(user=user, action='handoff_delete', object_type='handoff', object_id=hid)
    publish_workspace_event(workspace_id, 'handoff.deleted', {'id': hid})


def acknowledge_handoff(handoff: Handoff, user) -> Handoff:
    if handoff.acknowledged_at is not None:
        return handoff
    handoff.acknowledged_by = user
    handoff.acknowledged_at = timezone.now()
    handoff.status = 'completed'
    handoff.save(update_fields=['acknowledged_by', 'acknowledged_at', 'status', 'updated_at'])
    log_action(user=user, action='handoff_acknowledge', object_type='handoff', object_id=handoff.id)
    publish_workspace_event(handoff.workspace_id, 'handoff.updated', serialize_handoff(handoff))
    return handoff


def toggle_checklist_item(handoff: Handoff, user, item_id) -> HandoffChecklistItem:
    item = handoff.checklist_items.filter(id=item_id).first()
    if item is None:
        raise NotFound('checklist item not found')
    item.is_completed = not item.is_completed
    item.completed_by = user if item.is_completed else None
    item.completed_at = timezone.now() if item.is_completed else None
    item.save(update_fields=['is_completed', 'completed_by', 'completed_at'])
    return item
