"""
Workspace task board: filtering, lifecycle, checklists, comments and
statistics.

Assigning a task notifies the assignee and completing one notifies its
creator.  Tasks are soft deleted.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Iterable, Mapping, Optional

import bleach
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from clinical.models import Patient, Task, TaskChecklistItem, TaskComment, WorkspaceMember
from clinical.services.audit import log_action
from clinical.services.events import publish_workspace_event
from clinical.services.notification_helpers import notify_task

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('title', 'description', 'priority', 'status', 'category', 'due_date')

# markup allowed in task comments
COMMENT_TAGS = ['b', 'i', 'em', 'strong', 'code', 'br', 'p', 'ul', 'ol', 'li']

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _ts(value):
    return value.isoformat() if value else None


def serialize_checklist_item(item: TaskChecklistItem) -> dict:
    return {
        'id': item.id,
        'title': item.title,
        'is_completed': item.is_completed,
        'position': item.position,
        'completed_at': _ts(item.completed_at),
    }


def serialize_comment(c: TaskComment) -> dict:
    return {
        'id': c.id,
        'task_id': c.task_id,
        'author': c.author_id,
        'author_name': c.author.display_name if c.author_id else None,
        'content': c.content,
        'created_at': _ts(c.created_at),
    }


def serialize_task(task: Task, *, detail: bool = False) -> dict:
    data = {
        'id': task.id,
        'workspace_id': task.workspace_id,
        'patient_id': task.patient_id,
        'patient_name': task.patient.name if task.patient_id else None,
        'title': task.title,
        'description': task.description,
        'priority': task.priority,
        'status': task.status,
        'category': task.category,
        'created_by': task.created_by_id,
        'assigned_to': task.assigned_to_id,
        'assigned_to_name': task.assigned_to.display_name if task.assigned_to_id else None,
        'due_date': _ts(task.due_date),
        'completed_at': _ts(task.completed_at),
        'is_overdue': task.is_overdue,
        'created_at': _ts(task.created_at),
        'updated_at': _ts(task.updated_at),
    }
    if detail:
        data['checklist'] = [serialize_checklist_item(i) for i in task.checklist_items.all()]
        data['comments'] = [serialize_comment(c) for c in task.comments.select_related('author').order_by('created_at', 'id')]
    return data


def _assignee(workspace_id, user_id):
    if user_id is None:
        return None
    member = WorkspaceMember.objects.select_related('user').filter(
        workspace_id=workspace_id, user_id=user_id, status='active'
    ).first()
    if member is None:
        raise ValidationError({'assigned_to': 'assignee must be an active member of the workspace'})
    return member.user


def _patient(workspace_id, patient_id):
    if patient_id is None:
        return None
    patient = Patient.objects.filter(id=patient_id, workspace_id=workspace_id, deleted_at__isnull=True).first()
    if patient is None:
        raise ValidationError({'patient_id': 'patient not found in this workspace'})
    return patient


def task_queryset(workspace_ids):
    return Task.objects.select_related('patient', 'assigned_to').filter(
        workspace_id__in=workspace_ids, deleted_at__isnull=True
    )


def filter_tasks(qs, filters: Mapping[str, Any]):
    """Apply list filters: patient, assignee, status, priority, category, overdue and search."""
    if filters.get('workspace_id'):
        qs = qs.filter(workspace_id=filters['workspace_id'])
    if filters.get('patient_id'):
        qs = qs.filter(patient_id=filters['patient_id'])
    if filters.get('assigned_to'):
        qs = qs.filter(assigned_to_id=filters['assigned_to'])
    for field in ('status', 'priority', 'category'):
        values = filters.get(field)
        if values:
            qs = qs.filter(**{f'{field}__in': values if isinstance(values, (list, tuple)) else [values]})
    if filters.get('is_overdue') is not None:
        overdue = Q(due_date__lt=timezone.now(), status__in=Task.OPEN_STATUSES)
        qs = qs.filter(overdue) if filters['is_overdue'] else qs.exclude(overdue)
    if filters.get('search'):
        term = filters['search']
        qs = qs.filter(Q(title__icontains=term) | Q(description__icontains=term))
    return qs


def paginate(qs, page: Optional[int] = None, limit: Optional[int] = None) -> tuple[list, dict]:
    page = max(page or 1, 1)
    limit = min(limit or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    total = qs.count()
    start = (page - 1) * limit
    items = list(qs[start:start + limit])
    pages = (total + limit - 1) // limit if total else 0
    return items, {'page': page, 'limit': limit, 'total': total, 'total_pages': pages}


def list_tasks(workspace_ids, filters: Mapping[str, Any]) -> tuple[list, dict]:
    qs = filter_tasks(task_queryset(workspace_ids), filters)
    qs = qs.order_by('due_date', '-created_at', '-id') if filters.get('sort') == 'due_date' \
        else qs.order_by('-created_at', '-id')
    return paginate(qs, filters.get('page'), filters.get('limit'))


def get_task(task_id, workspace_ids) -> Task:
    task = task_queryset(workspace_ids).filter(id=task_id).first()
    if task is None:
        raise NotFound('task not found')
    return task


def create_task(workspace, user, values: Mapping[str, Any], checklist: Iterable[str] = ()) -> Task:
    fields = {f: values[f] for f in EDITABLE_FIELDS if values.get(f) is not None}
    fields['title'] = bleach.clean((fields.get('title') or '').strip(), strip=True)
    if not fields['title']:
        raise ValidationError({'title': 'title is required'})
    assignee = _assignee(workspace.id, values.get('assigned_to'))
    patient = _patient(workspace.id, values.get('patient_id'))
    with transaction.atomic():
        task = Task.objects.create(
            workspace=workspace, patient=patient, created_by=user, assigned_to=assignee, **fields
        )
        if task.status == 'completed':
            task.completed_at = timezone.now()
            task.save(update_fields=['completed_at'])
        TaskChecklistItem.objects.bulk_create([
            TaskChecklistItem(task=task, title=title, position=i)
            for i, title in enumerate(t.strip() for t in checklist) if title
        ])
        if assignee is not None and assignee.id != user.id:
            notify_task(assignee, task, 'assigned', assigned_by_name=user.display_name)
    log_action(user=user, action='task_create', object_type='task', object_id=task.id)
    publish_workspace_event(workspace.id, 'task.created', serialize_task(task))
    return task


def update_task(task: Task, user, values: Mapping[str, Any]) -> Task:
    changed = [f for f in EDITABLE_FIELDS if f in values]
    for f in changed:
        value = values[f]
        if f == 'title':
            value = bleach.clean((value or '').strip(), strip=True)
            if not value:
                raise ValidationError({'title': 'title cannot be blank'})
        if f == 'description' and value is None:
            value = ''
        setattr(task, f, value)

    new_assignee = None
    if 'assigned_to' in values and values['assigned_to'] != task.assigned_to_id:
        new_assignee = _assignee(task.workspace_id, values['assigned_to'])
        task.assigned_to = new_assignee
        changed.append('assigned_to')
    if 'patient_id' in values and values['patient_id'] != task.patient_id:
        task.patient = _patient(task.workspace_id, values['patient_id'])
        changed.append('patient')

    just_completed = False
    if 'status' in changed:
        if task.status == 'completed' and task.completed_at is None:
            task.completed_at = timezone.now()
            just_completed = True
        elif task.status != 'completed':
            task.completed_at = None
    if 'due_date' in changed:
        task.reminder_sent = False

    if not changed:
        return task
    with transaction.atomic():
        task.save()
        if new_assignee is not None and new_assignee.id != user.id:
            notify_task(new_assignee, task, 'assigned', assigned_by_name=user.display_name)
        if just_completed and task.created_by_id and task.created_by_id != user.id:
            notify_task(task.created_by, task, 'completed')
    log_action(user=user, action='task_update', object_type='task', object_id=task.id, detail={'fields': changed})
    publish_workspace_event(task.workspace_id, 'task.updated', serialize_task(task))
    return task


def delete_task(task: Task, user) -> None:
    task.deleted_at = timezone.now()
    task.save(update_fields=['deleted_at', 'updated_at'])
    log_action(user=user, action='task_delete', object_type='task', object_id=task.id)
    publish_workspace_event(task.workspace_id, 'task.deleted', {'id': task.id})


def add_checklist_item(task: Task, user, title: str) -> TaskChecklistItem:
    title = bleach.clean((title or '').strip(), strip=True)
    if not title:
        raise ValidationError({'title': 'title is required'})
    last = task.checklist_items.order_by('-position').first()
    item = TaskChecklistItem.objects.create(task=task, title=title, position=(last.position + 1) if last else 0)
    publish_workspace_event(task.workspace_id, 'task.updated', serialize_task(task))
    return item


def toggle_checklist_item(task: Task, user, item_id, is_completed: Optional[bool] = None) -> TaskChecklistItem:
    item = task.checklist_items.filter(id=item_id).first()
    if item is None:
        raise NotFound('checklist item not found')
    item.is_completed = (not item.is_completed) if is_completed is None else is_completed
    item.completed_at = timezone.now() if item.is_completed else None
    item.save(update_fields=['is_completed', 'completed_at'])
    log_action(user=user, action='task_checklist_toggle', object_type='task', object_id=task.id,
               detail={'item_id': item.id, 'is_completed': item.is_completed})
    publish_workspace_event(task.workspace_id, 'task.updated', serialize_task(task))
    return item


def add_comment(task: Task, user, content: str) -> TaskComment:
    content = bleach.clean((content or '').strip(), tags=COMMENT_TAGS, strip=True)
    if not content:
        raise ValidationError({'content': 'comment cannot be empty'})
    comment = TaskComment.objects.create(task=task, author=user, content=content)
    log_action(user=user, action='task_comment', object_type='task', object_id=task.id)
    publish_workspace_event(task.workspace_id, 'task.commented', serialize_comment(comment))
    return comment


def task_statistics(workspace_ids, filters: Optional[Mapping[str, Any]] = None, now=None) -> dict:
    now = now or timezone.now()
    qs = filter_tasks(task_queryset(workspace_ids), filters or {})
    by_status = {s: 0 for s, _ in Task.STATUS_CHOICES}
    for row in qs.values('status').annotate(n=Count('id')):
        by_status[row['status']] = row['n']
    by_priority = {p: 0 for p, _ in Task.PRIORITY_CHOICES}
    for row in qs.values('priority').annotate(n=Count('id')):
        by_priority[row['priority']] = row['n']
    start_of_day = timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return {
        'total': sum(by_status.values()),
        'by_status': by_status,
        'by_priority': by_priority,
        'overdue': qs.filter(due_date__lt=now, status__in=Task.OPEN_STATUSES).count(),
        'completed_today': qs.filter(status='completed', completed_at__gte=start_of_day).count(),
    }


def send_due_reminders(minutes: int = 60, now=None) -> list:
    """Notify assignees of open tasks due within ``minutes``; each task is reminded once.

    Returns the reminded tasks.
    """
    now = now or timezone.now()
    due = Task.objects.select_related('assigned_to', 'patient', 'workspace').filter(
        deleted_at__isnull=True,
        status__in=Task.OPEN_STATUSES,
        reminder_sent=False,
        assigned_to__isnull=False,
        due_date__isnull=False,
        due_date__lte=now + timedelta(minutes=minutes),
    )
    reminded = []
    for task in due:
        with transaction.atomic():
            notify_task(task.assigned_to, task, 'due')
            task.reminder_sent = True
            task.save(update_fields=['reminder_sent', 'updated_at'])
        reminded.append(task)
    if reminded:
        logger.info('Sent %s task reminders', len(reminded))
    return reminded
