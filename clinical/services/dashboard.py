from typing import Optional

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count
from django.utils import timezone

from clinical.models import ClinicalAlert, Notification, Patient, Task
from clinical.services.events import dashboard_cache_key


def workspace_overview(workspace_id, now=None) -> dict:
    now = now or timezone.now()
    patients = Patient.objects.filter(workspace_id=workspace_id, deleted_at__isnull=True)
    by_state = {s: 0 for s, _ in Patient.WORKFLOW_CHOICES}
    for row in patients.values('workflow_state').annotate(n=Count('id')):
        by_state[row['workflow_state']] = row['n']

    open_tasks = Task.objects.filter(workspace_id=workspace_id, deleted_at__isnull=True,
                                     status__in=Task.OPEN_STATUSES)
    alerts = ClinicalAlert.objects.filter(workspace_id=workspace_id, status='active')
    alerts_by_severity = {s: 0 for s, _ in ClinicalAlert.SEVERITY_CHOICES}
    for row in alerts.values('severity').annotate(n=Count('id')):
        alerts_by_severity[row['severity']] = row['n']

    return {
        'workspace_id': workspace_id,
        'patients': {
            'total': patients.count(),
            'active': patients.filter(discharge_date__isnull=True).count(),
            'by_workflow_state': by_state,
        },
        'tasks': {
            'open': open_tasks.count(),
            'overdue': open_tasks.filter(due_date__lt=now).count(),
            'urgent': open_tasks.filter(priority='urgent').count(),
        },
        'alerts': {
            'active': sum(alerts_by_severity.values()),
            'by_severity': alerts_by_severity,
        },
        'generated_at': now.isoformat(),
    }


def get_dashboard(workspace_id, user, refresh: bool = False) -> dict:
    """Workspace overview (cached) plus the caller's unread notification count."""
    ck = dashboard_cache_key(workspace_id)
    overview: Optional[dict] = None if refresh else cache.get(ck)
    if overview is None:
        overview = workspace_overview(workspace_id)
        cache.set(ck, overview, settings.DASHBOARD_CACHE_SECONDS)
    unread = Notification.objects.filter(user=user, is_read=False).count()
    return {**overview, 'unread_notifications': unread}


def invalidate_dashboard(workspace_id) -> None:
    cache.delete(dashboard_cache_key(workspace_id))
