from datetime import datetime, time, timedelta

import pytest
from django.core import mail
from django.utils import timezone
from rest_framework.exceptions import NotFound

from clinical.models import Notification, WorkspaceMember
from clinical.services import notifications as svc
from clinical.services import patients as patient_svc
from clinical.services.notification_helpers import (
    notify_ai_alert,
    notify_critical_value,
    notify_mention,
    notify_patient_event,
    notify_task,
    notify_workspace_about_patient,
)

pytestmark = pytest.mark.django_db


def test_quiet_hours_window_wraps_midnight():
    assert svc.in_quiet_hours(time(22), time(8), time(23, 30))
    assert svc.in_quiet_hours(time(22), time(8), time(7, 59))
    assert not svc.in_quiet_hours(time(22), time(8), time(8, 0))
    assert svc.in_quiet_hours(time(13), time(14), time(13, 15))
    assert not svc.in_quiet_hours(time(9), time(9), time(9, 0))


def test_disabled_type_is_suppressed_but_critical_passes(doctor):
    svc.update_preferences(doctor, {'patient_updates': False})
    assert svc.create_notification(doctor, 'patient_updated', 'Updated') is None
    n = svc.create_notification(doctor, 'patient_updated', 'Updated', severity='critical')
    assert n is not None and n.severity == 'critical'


def test_quiet_hours_only_let_high_severity_through(doctor):
    svc.update_preferences(doctor, {'quiet_hours_enabled': True, 'quiet_hours_start': time(0, 0),
                                    'quiet_hours_end': time(23, 59)})
    noon = timezone.make_aware(datetime(2024, 1, 1, 12, 0))
    assert not svc.should_notify(doctor, 'system', 'info', now=noon)
    assert svc.should_notify(doctor, 'system', 'high', now=noon)


def test_unknown_field_is_rejected(doctor):
    with pytest.raises(TypeError):
        svc.create_notification(doctor, 'system', 'Hello', colour='red')


def test_high_severity_is_mailed(doctor):
    n = svc.create_notification(doctor, 'system', 'Downtime tonight', severity='high', message='22:00-23:00')
    n.refresh_from_db()
    assert n.sent_email is True
    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ['doctor1@example.org']


def test_email_preference_off_skips_mail(doctor):
    svc.update_preferences(doctor, {'email': False})
    n = svc.create_notification(doctor, 'system', 'Downtime tonight', severity='high')
    assert n.sent_email is False
    assert mail.outbox == []


def test_notify_workspace_members_excludes_actor_and_inactive(workspace, owner, doctor, make_user):
    gone = make_user('gone1')
    WorkspaceMember.objects.create(workspace=workspace, user=gone, role='nurse', status='inactive')
    created = svc.notify_workspace_members(workspace, 'system', 'Hello', exclude_user=owner)
    assert created == 1
    assert list(Notification.objects.values_list('user__username', flat=True)) == ['doctor1']


def test_workspace_patient_event_carries_patient(patient, owner, doctor):
    notify_workspace_about_patient(patient, 'patient_discharged', exclude_user=owner)
    n = Notification.objects.get(user=doctor)
    assert n.type == 'patient_discharged'
    assert n.message == 'Patient discharged: John Carter'
    assert n.related_patient_id == patient.id
    assert n.related_workspace_id == patient.workspace_id
    assert n.data == {'patient_id': patient.id, 'patient_name': 'John Carter'}


def test_patient_event_helper(patient, doctor):
    n = notify_patient_event(doctor, 'patient_updated', patient)
    assert n.title == 'Patient updated'
    assert n.message == 'Patient details updated: John Carter'
    assert n.severity == 'info'
    assert n.action_url == f'/dashboard/patients/{patient.id}'


def test_ai_alert_helper(patient, doctor):
    n = notify_ai_alert(doctor, patient, 'deterioration', 'NEWS2 rising', 'high',
                        recommendations=['repeat lactate'], alert_id=7)
    assert n.type == 'ai_alert'
    assert n.title == 'Clinical alert: John Carter'
    assert n.severity == 'high'
    assert n.action_url == f'/dashboard/patients/{patient.id}?tab=ai'
    assert n.data['recommendations'] == ['repeat lactate']
    assert n.data['alert_id'] == 7


def test_critical_value_helper(patient, doctor):
    svc.update_preferences(doctor, {'critical_alerts': False})
    n = notify_critical_value(doctor, patient, 'potassium', '6.8 mmol/L', '3.5-5.0')
    assert n.title == 'Critical value: John Carter'
    assert n.message == 'potassium: 6.8 mmol/L (normal: 3.5-5.0)'
    assert n.severity == 'critical'
    assert n.action_url == f'/dashboard/patients/{patient.id}'


def test_updating_patient_notifies_assignee(patient, owner, doctor):
    patient_svc.update_patient(patient, owner, {'category': 'cardiology'})
    n = Notification.objects.get(user=doctor)
    assert n.type == 'patient_updated'
    patient_svc.update_patient(patient, doctor, {'age': 73})
    assert Notification.objects.filter(user=doctor).count() == 1


def test_critical_lab_result_notifies_assignee(patient, owner, doctor):
    patient_svc.add_patient_test(patient, owner, 'laboratory', 'BMP', {
        'sodium': 139,
        'potassium': {'value': 6.8, 'unit': 'mmol/L', 'flag': 'critical', 'reference_range': '3.5-5.0'},
        'glucose': {'value': 110, 'flag': 'high'},
    })
    n = Notification.objects.get(user=doctor)
    assert n.type == 'critical_value'
    assert n.message == 'potassium: 6.8 mmol/L (normal: 3.5-5.0)'
    assert not Notification.objects.filter(user=owner).exists()


def test_mention_preview_is_truncated(doctor, workspace):
    n = notify_mention(doctor, 'Olive Owner', 42, 'x' * 250, workspace)
    assert len(n.message) == 100
    assert n.action_url == f'/dashboard/workspace/{workspace.id}?tab=notes'
    assert n.related_note_id == '42'


def test_task_due_links_to_patient_tab(doctor, patient):
    task = patient.tasks.create(workspace=patient.workspace, title='Repeat lactate')
    n = notify_task(doctor, task, 'due')
    assert n.type == 'task_due'
    assert n.severity == 'high'
    assert n.action_url == f'/dashboard/patients/{patient.id}?tab=tasks'


def test_list_filters_and_excludes_expired(doctor):
    now = timezone.now()
    svc.create_notification(doctor, 'system', 'a', severity='low')
    svc.create_notification(doctor, 'mention', 'b', severity='medium')
    svc.create_notification(doctor, 'system', 'old', expires_at=now - timedelta(minutes=1))
    titles = [n.title for n in svc.list_notifications(doctor)]
    assert titles == ['b', 'a']
    assert [n.title for n in svc.list_notifications(doctor, {'severity': 'low,medium', 'type': ['system']})] == ['a']


def test_read_state_and_stats(doctor, owner):
    first = svc.create_notification(doctor, 'system', 'a')
    svc.create_notification(doctor, 'system', 'b', severity='critical')
    svc.create_notification(owner, 'system', 'c')
    svc.mark_as_read(doctor, first.id)
    stats = svc.get_stats(doctor)
    assert stats['total'] == 2
    assert stats['unread'] == 1
    assert stats['by_severity']['critical'] == 1
    assert stats['by_type'] == {'system': 2}
    assert svc.mark_all_as_read(doctor) == 1


def test_cannot_touch_someone_elses_notification(doctor, owner):
    n = svc.create_notification(owner, 'system', 'private')
    with pytest.raises(NotFound):
        svc.mark_as_read(doctor, n.id)


def test_purge_expired(doctor):
    svc.create_notification(doctor, 'system', 'stale', expires_at=timezone.now() - timedelta(days=1))
    svc.create_notification(doctor, 'system', 'fresh')
    assert svc.purge_expired() == 1
    assert list(Notification.objects.values_list('title', flat=True)) == ['fresh']


def test_recipients_keep_order_and_skip_inactive(make_user):
    a, b, c = make_user('a'), make_user('b'), make_user('c', is_active=False)
    assert svc.recipients([b.id, None, a.id, b.id, c.id]) == [b, a]


def test_quiet_hours_use_local_time(doctor):
    svc.update_preferences(doctor, {'quiet_hours_enabled': True})
    late = timezone.make_aware(datetime(2024, 1, 1, 23, 0))
    assert not svc.should_notify(doctor, 'system', 'medium', now=late)
    assert svc.should_notify(doctor, 'system', 'high', now=late)
