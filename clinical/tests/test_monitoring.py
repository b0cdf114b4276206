import pytest
from rest_framework.exceptions import NotFound, ValidationError

from clinical.exceptions import MonitoringConfigExists
from clinical.models import ClinicalAlert, Notification
from clinical.services import monitoring as svc

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize('name, metric', [
    ('HR', 'heart_rate'),
    ('Heart Rate', 'heart_rate'),
    ('spo2', 'oxygen_saturation'),
    ('Systolic BP', 'systolic_bp'),
    ('resp_rate', 'respiratory_rate'),
    ('weight', None),
])
def test_resolve_metric(name, metric):
    assert svc.resolve_metric(name) == metric


def test_threshold_bands():
    assert svc.check_vital_thresholds('heart_rate', 150).is_critical
    assert svc.check_vital_thresholds('heart_rate', 35).message == 'Critical low: 35 < 40'
    warning = svc.check_vital_thresholds('heart_rate', 105)
    assert warning.is_warning and not warning.is_critical
    assert svc.check_vital_thresholds('heart_rate', 80).message == 'Within normal range'
    assert svc.check_vital_thresholds('weight', 80).threshold is None


def test_overrides_merge_into_defaults():
    merged = svc.merged_thresholds({'HR': {'critical_max': 120, 'bogus': 1}, 'weight': {'max': 100}})
    assert merged['heart_rate'] == {'min': 60, 'max': 100, 'critical_min': 40, 'critical_max': 120}
    assert 'weight' not in merged
    assert svc.DEFAULT_VITAL_THRESHOLDS['heart_rate']['critical_max'] == 140


def test_critical_vitals_raise_alerts(patient, doctor):
    alerts = svc.check_vitals(patient, {'heart_rate': 150, 'temperature': 37.0, 'oxygen_saturation': 85,
                                        'note': 'restless', 'systolic_bp': True})
    assert sorted(a.trigger_data['vital_name'] for a in alerts) == ['heart_rate', 'oxygen_saturation']
    hr = next(a for a in alerts if a.trigger_data['vital_name'] == 'heart_rate')
    assert hr.severity == 'critical'
    assert hr.urgency_level == 9
    assert hr.description == 'heart_rate critically high: 150bpm (threshold: 140bpm)'
    # no monitoring config, nobody is notified
    assert hr.notification_sent is False
    assert not Notification.objects.exists()


def test_config_thresholds_are_honoured(patient, doctor):
    svc.create_config(patient, doctor, {'alert_thresholds': {'heart_rate': {'critical_max': 110}}})
    alerts = svc.check_vitals(patient, {'heart_rate': 120})
    assert len(alerts) == 1
    assert alerts[0].trigger_data['threshold'] == {'critical_min': 40, 'critical_max': 110}


def test_alert_notifies_assignee_and_recipients(patient, doctor, owner, make_user):
    inactive = make_user('gone', is_active=False)
    svc.create_config(patient, owner, {'notification_recipients': [
        {'user_id': owner.id, 'channels': ['push']},
        {'user_id': doctor.id},
        {'user_id': inactive.id},
    ]})
    alert = svc.check_vitals(patient, {'systolic_bp': 70})[0]
    alert.refresh_from_db()
    assert alert.notification_sent is True
    assert alert.notification_channels == ['push', 'in_app']
    notified = set(Notification.objects.filter(type='ai_alert').values_list('user__username', flat=True))
    assert notified == {'doctor1', 'owner1'}
    n = Notification.objects.get(user=doctor)
    assert n.action_url == f'/dashboard/patients/{patient.id}?tab=ai'
    assert n.data['alert_id'] == alert.id
    assert svc.get_config(patient).last_alert_at is not None


def test_notify_on_critical_off_silences_alerts(patient, doctor):
    svc.create_config(patient, doctor, {'notify_on_critical': False})
    alert = svc.check_vitals(patient, {'temperature': 40.1})[0]
    assert svc.trigger_alert_notification(alert) == 0
    assert not Notification.objects.exists()


def test_duplicate_config_conflicts(patient, doctor):
    svc.create_config(patient, doctor, {})
    with pytest.raises(MonitoringConfigExists):
        svc.create_config(patient, doctor, {})


def test_update_missing_config(patient, doctor):
    with pytest.raises(NotFound):
        svc.update_config(patient, doctor, {'is_active': False})


def test_alert_lifecycle(patient, doctor):
    alert = svc.check_vitals(patient, {'respiratory_rate': 35})[0]
    svc.acknowledge_alert(alert, doctor)
    assert alert.status == 'acknowledged' and alert.acknowledged_by == doctor
    svc.resolve_alert(alert, doctor, 'Oxygen started')
    assert alert.status == 'resolved' and alert.resolution_notes == 'Oxygen started'
    with pytest.raises(ValidationError):
        svc.dismiss_alert(alert, doctor, 'late')


def test_get_alert_is_scoped_to_workspaces(patient):
    alert = svc.check_vitals(patient, {'respiratory_rate': 35})[0]
    assert svc.get_alert(alert.id, [patient.workspace_id]) == alert
    with pytest.raises(NotFound):
        svc.get_alert(alert.id, [])


def test_statistics(patient, doctor):
    alerts = svc.check_vitals(patient, {'heart_rate': 30, 'diastolic_bp': 120})
    svc.resolve_alert(alerts[0], doctor)
    stats = svc.alert_statistics(patient.workspace)
    assert stats['total'] == 2
    assert stats['by_severity']['critical'] == 2
    assert stats['by_type'] == {'critical_value': 2}
    assert stats['by_status'] == {'resolved': 1, 'active': 1}
    assert stats['resolution_rate'] == 0.5
    assert ClinicalAlert.objects.filter(status='active').count() == 1
