"""
In-app notifications: creation with preference checks, fan-out to
workspace members, listing, read state and statistics.

A created notification is pushed to the recipient's channel group
``notifications.<user_id>`` so that open ``ws/notifications/`` sockets
update without polling.  Critical and high severity notifications are
also mailed when the recipient keeps email delivery on.
"""
from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from typing import Any, Iterable, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound

from clinical.models import Notification, NotificationPreference, WorkspaceMember
from clinical.services.email import deliver_notification_email
from clinical.services.events import send_to_group, user_group

logger = logging.getLogger(__name__)

User = get_user_model()

SEVERITIES = ('critical', 'high', 'medium', 'low', 'info')

# notification type -> NotificationPreference flag that can silence it
PREFERENCE_FLAGS = {
    'mention': 'mention',
    'patient_assigned': 'assignment',
    'assignment': 'assignment',
    'task_assigned': 'assignment',
    'task_due': 'assignment',
    'critical_value': 'critical_alerts',
    'ai_alert': 'ai_alerts',
    'ai_analysis_complete': 'ai_alerts',
    'patient_created': 'patient_updates',
    'patient_updated': 'patient_updates',
    'patient_discharged': 'patient_updates',
    'note_added': 'patient_updates',
}

QUIET_HOURS_SEVERITIES = {'critical', 'high'}

PREFERENCE_FIELDS = (
    'email', 'push', 'sms',
    'mention', 'assignment', 'critical_alerts', 'patient_updates', 'ai_alerts',
    'quiet_hours_enabled', 'quiet_hours_start', 'quiet_hours_end',
)

CREATE_FIELDS = (
    'message', 'severity', 'related_patient', 'related_workspace', 'related_note_id',
    'data', 'action_url', 'expires_at',
)


def serialize_notification(n: Notification) -> dict:
    return {
        'id': n.id,
        'user_id': n.user_id,
        'type': n.type,
        'title': n.title,
        'message': n.message,
        'severity': n.severity,
        'related_patient_id': n.related_patient_id,
        'related_workspace_id': n.related_workspace_id,
        'related_note_id': n.related_note_id,
        'data': n.data,
        'action_url': n.action_url,
        'is_read': n.is_read,
        'read_at': n.read_at.isoformat() if n.read_at else None,
        'sent_push': n.sent_push,
        'sent_email': n.sent_email,
        'expires_at': n.expires_at.isoformat() if n.expires_at else None,
        'created_at': n.created_at.isoformat() if n.created_at else None,
    }


# ---------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------
def get_preferences(user) -> NotificationPreference:
    prefs, _ = NotificationPreference.objects.get_or_create(user=user)
    return prefs


def serialize_preferences(prefs: NotificationPreference) -> dict:
    data = {f: getattr(prefs, f) for f in PREFERENCE_FIELDS}
    data['quiet_hours_start'] = prefs.quiet_hours_start.strftime('%H:%M')
    data['quiet_hours_end'] = prefs.quiet_hours_end.strftime('%H:%M')
    data['updated_at'] = prefs.updated_at.isoformat() if prefs.updated_at else None
    return data


def update_preferences(user, changes: dict) -> NotificationPreference:
    """Merge ``changes`` (already validated) into the stored preferences."""
    prefs = get_preferences(user)
    fields = [f for f in PREFERENCE_FIELDS if f in changes]
    for f in fields:
        setattr(prefs, f, changes[f])
    if fields:
        prefs.save(update_fields=fields + ['updated_at'])
    return prefs


def in_quiet_hours(start: time, end: time, now: time) -> bool:
    if start == end:
        return False
    if start < end:
        return start <= now < end
    # window wraps midnight, e.g. 22:00 -> 08:00
    return now >= start or now < end


def should_notify(user, notification_type: str, severity: str = 'info',
                  now: Optional[datetime] = None) -> bool:
    """Apply the recipient's preferences to one notification.

    Critical notifications always pass.  Otherwise the preference flag
    mapped from the type must be on, and during quiet hours only high
    severity gets through.  Types without a flag (system, invites,
    completed tasks) are only subject to quiet hours.
    """
    if severity == 'critical':
        return True
    prefs = get_preferences(user)
    flag = PREFERENCE_FLAGS.get(notification_type)
    if flag and not getattr(prefs, flag):
        return False
    if prefs.quiet_hours_enabled:
        local_now = timezone.localtime(now or timezone.now()).time()
        if in_quiet_hours(prefs.quiet_hours_start, prefs.quiet_hours_end, local_now):
            return severity in QUIET_HOURS_SEVERITIES
    return True


# ---------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------
def create_notification(user, type: str, title: str, **fields: Any) -> Optional[Notification]:
    """Create one notification for ``user`` unless their preferences suppress it.

    ``fields`` may carry any of ``message, severity, related_patient,
    related_workspace, related_note_id, data, action_url, expires_at``.
    Returns ``None`` when suppressed.
    """
    unknown = set(fields) - set(CREATE_FIELDS)
    if unknown:
        raise TypeError(f"unexpected notification fields: {', '.join(sorted(unknown))}")
    severity = fields.get('severity') or 'info'
    if not should_notify(user, type, severity):
        logger.debug('Notification %s for user %s suppressed by preferences', type, user.id)
        return None

    fields['severity'] = severity
    fields['data'] = fields.get('data') or {}
    notification = Notification.objects.create(user=user, type=type, title=title, **fields)

    deliver_notification_email(notification)

    payload = serialize_notification(notification)
    transaction.on_commit(lambda: send_to_group(user_group(user.id), {'type': 'notification.created', 'notification': payload}))
    return notification


def notify_workspace_members(workspace, type: str, title: str, exclude_user=None, **fields: Any) -> int:
    """One notification per active member of ``workspace``; returns how many were created."""
    members = WorkspaceMember.objects.filter(workspace=workspace, status='active').select_related('user')
    if exclude_user is not None:
        members = members.exclude(user_id=getattr(exclude_user, 'id', exclude_user))
    fields.setdefault('related_workspace', workspace)
    created = 0
    with transaction.atomic():
        for member in members:
            if create_notification(member.user, type, title, **fields) is not None:
                created += 1
    return created


# ---------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------
def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [v for v in str(value).split(',') if v]


def list_notifications(user, filters: Optional[dict] = None) -> list[Notification]:
    """Newest first, expired notifications excluded.

    ``filters`` keys: ``is_read``, ``severity`` and ``type`` (value or list),
    ``related_patient_id``, ``related_workspace_id``, ``created_after``,
    ``created_before``, ``limit`` (default 50), ``offset``.
    """
    filters = filters or {}
    now = timezone.now()
    qs = Notification.objects.filter(user=user).filter(Q(expires_at__isnull=True) | Q(expires_at__gt=now))
    if filters.get('is_read') is not None:
        qs = qs.filter(is_read=filters['is_read'])
    severities = _as_list(filters.get('severity'))
    if severities:
        qs = qs.filter(severity__in=severities)
    types = _as_list(filters.get('type'))
    if types:
        qs = qs.filter(type__in=types)
    if filters.get('related_patient_id'):
        qs = qs.filter(related_patient_id=filters['related_patient_id'])
    if filters.get('related_workspace_id'):
        qs = qs.filter(related_workspace_id=filters['related_workspace_id'])
    if filters.get('created_after'):
        qs = qs.filter(created_at__gte=filters['created_after'])
    if filters.get('created_before'):
        qs = qs.filter(created_at__lte=filters['created_before'])
    limit = filters.get('limit') or 50
    offset = filters.get('offset') or 0
    return list(qs.order_by('-created_at', '-id')[offset:offset + limit])


def _own(user, notification_id) -> Notification:
    n = Notification.objects.filter(id=notification_id, user=user).first()
    if n is None:
        raise NotFound('notification not found')
    return n


def mark_as_read(user, notification_id) -> Notification:
    n = _own(user, notification_id)
    if not n.is_read:
        n.is_read = True
        n.read_at = timezone.now()
        n.save(update_fields=['is_read', 'read_at'])
    return n


def mark_all_as_read(user) -> int:
    return Notification.objects.filter(user=user, is_read=False).update(is_read=True, read_at=timezone.now())


def delete_notification(user, notification_id) -> None:
    _own(user, notification_id).delete()


def clear_all(user) -> int:
    deleted, _ = Notification.objects.filter(user=user).delete()
    return deleted


def get_stats(user, now: Optional[datetime] = None) -> dict:
    now = now or timezone.now()
    start_of_day = timezone.localtime(now).replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)
    qs = Notification.objects.filter(user=user)

    by_severity = {s: 0 for s in SEVERITIES}
    for row in qs.values('severity').annotate(n=Count('id')):
        by_severity[row['severity']] = row['n']
    by_type = {row['type']: row['n'] for row in qs.values('type').annotate(n=Count('id'))}

    return {
        'total': qs.count(),
        'unread': qs.filter(is_read=False).count(),
        'by_severity': by_severity,
        'by_type': by_type,
        'today': qs.filter(created_at__gte=start_of_day).count(),
        'this_week': qs.filter(created_at__gte=week_ago).count(),
    }


def purge_expired(now: Optional[datetime] = None) -> int:
    deleted, _ = Notification.objects.filter(expires_at__lte=now or timezone.now()).delete()
    return deleted


def recipients(user_ids: Iterable) -> list:
    """Active users for ``user_ids`` keeping first-seen order, duplicates dropped."""
    seen, ordered = set(), []
    for uid in user_ids:
        if uid is None or uid in seen:
            continue
        seen.add(uid)
        ordered.append(uid)
    users = {u.id: u for u in User.objects.filter(id__in=ordered, is_active=True)}
    return [users[uid] for uid in ordered if uid in users]
