"""
Vital-sign monitoring: per-patient configuration, threshold checks,
clinical alerts and the notifications they trigger.

Recording a ``vital_signs`` :class:`PatientData` runs :func:`check_vitals`.
Every numeric vital outside its critical range raises a
``critical_value`` :class:`ClinicalAlert`; the alert is then fanned out to
the patient's clinician and the recipients configured in the patient's
:class:`MonitoringConfig`.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping, Optional

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from clinical.exceptions import MonitoringConfigExists
from clinical.models import ClinicalAlert, MonitoringConfig, Patient
from clinical.services.audit import log_action
from clinical.services.events import publish_workspace_event
from clinical.services.notification_helpers import notify_ai_alert
from clinical.services.notifications import recipients

logger = logging.getLogger(__name__)

DEFAULT_VITAL_THRESHOLDS = {
    'heart_rate': {'min': 60, 'max': 100, 'critical_min': 40, 'critical_max': 140},
    'temperature': {'min': 36.5, 'max': 37.5, 'critical_min': 35, 'critical_max': 39},
    'respiratory_rate': {'min': 12, 'max': 20, 'critical_min': 8, 'critical_max': 30},
    'systolic_bp': {'min': 90, 'max': 140, 'critical_min': 80, 'critical_max': 180},
    'diastolic_bp': {'min': 60, 'max': 90, 'critical_min': 50, 'critical_max': 110},
    'oxygen_saturation': {'min': 95, 'max': 100, 'critical_min': 90, 'critical_max': 100},
}

UNITS = {
    'heart_rate': 'bpm',
    'temperature': '°C',
    'respiratory_rate': '/min',
    'systolic_bp': 'mmHg',
    'diastolic_bp': 'mmHg',
    'oxygen_saturation': '%',
}

ALERT_SEVERITIES = ('critical', 'high', 'medium', 'low')

CONFIG_FIELDS = (
    'auto_analysis_enabled',
    'analysis_frequency_minutes',
    'monitored_metrics',
    'alert_thresholds',
    'notify_on_critical',
    'notify_on_deterioration',
    'notify_on_improvement',
    'notification_recipients',
    'is_active',
)


@dataclass
class ThresholdCheck:
    is_critical: bool
    is_warning: bool
    message: str
    threshold: Optional[dict] = None


def resolve_metric(name: str) -> Optional[str]:
    """Map a free-form vital key (``HR``, ``spo2``, ``Systolic BP``...) to a threshold metric."""
    metric = re.sub(r'[^a-z0-9_]', '_', (name or '').lower())
    if 'heart' in metric or 'hr' in metric:
        return 'heart_rate'
    if 'temp' in metric:
        return 'temperature'
    if 'resp' in metric:
        return 'respiratory_rate'
    if 'systolic' in metric or 'sbp' in metric:
        return 'systolic_bp'
    if 'diastolic' in metric or 'dbp' in metric:
        return 'diastolic_bp'
    if 'o2' in metric or 'spo2' in metric or 'sat' in metric:
        return 'oxygen_saturation'
    return None


def merged_thresholds(overrides: Optional[Mapping[str, Any]] = None) -> dict:
    """Default thresholds with per-metric overrides from a monitoring config."""
    merged = {metric: dict(values) for metric, values in DEFAULT_VITAL_THRESHOLDS.items()}
    for metric, values in (overrides or {}).items():
        key = metric if metric in merged else resolve_metric(metric)
        if key is None or not isinstance(values, Mapping):
            continue
        merged[key].update({k: v for k, v in values.items()
                            if k in ('min', 'max', 'critical_min', 'critical_max') and v is not None})
    return merged


def check_vital_thresholds(name: str, value: float, thresholds: Optional[Mapping[str, dict]] = None) -> ThresholdCheck:
    thresholds = thresholds or DEFAULT_VITAL_THRESHOLDS
    metric = resolve_metric(name)
    threshold = thresholds.get(metric) if metric else None
    if not threshold:
        return ThresholdCheck(False, False, 'No threshold defined')

    if value < threshold['critical_min']:
        return ThresholdCheck(True, False, f"Critical low: {value} < {threshold['critical_min']}", threshold)
    if value > threshold['critical_max']:
        return ThresholdCheck(True, False, f"Critical high: {value} > {threshold['critical_max']}", threshold)
    if value < threshold['min']:
        return ThresholdCheck(False, True, f"Warning low: {value} < {threshold['min']}", threshold)
    if value > threshold['max']:
        return ThresholdCheck(False, True, f"Warning high: {value} > {threshold['max']}", threshold)
    return ThresholdCheck(False, False, 'Within normal range', threshold)


# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------
def serialize_config(config: MonitoringConfig) -> dict:
    return {
        'id': config.id,
        'patient_id': config.patient_id,
        'workspace_id': config.workspace_id,
        'created_by': config.created_by_id,
        **{f: getattr(config, f) for f in CONFIG_FIELDS},
        'last_alert_at': config.last_alert_at.isoformat() if config.last_alert_at else None,
        'created_at': config.created_at.isoformat() if config.created_at else None,
        'updated_at': config.updated_at.isoformat() if config.updated_at else None,
    }


def get_config(patient: Patient) -> Optional[MonitoringConfig]:
    return MonitoringConfig.objects.filter(patient=patient).first()


def create_config(patient: Patient, user, values: Mapping[str, Any]) -> MonitoringConfig:
    if MonitoringConfig.objects.filter(patient=patient).exists():
        raise MonitoringConfigExists()
    fields = {f: values[f] for f in CONFIG_FIELDS if f in values}
    try:
        with transaction.atomic():
            config = MonitoringConfig.objects.create(
                patient=patient, workspace=patient.workspace, created_by=user, **fields
            )
    except IntegrityError:
        # lost a race with a concurrent create
        raise MonitoringConfigExists()
    log_action(user=user, action='monitoring_config_create', object_type='patient', object_id=patient.id)
    return config


def update_config(patient: Patient, user, values: Mapping[str, Any]) -> MonitoringConfig:
    config = get_config(patient)
    if config is None:
        raise NotFound('monitoring configuration not found')
    fields = [f for f in CONFIG_FIELDS if f in values]
    for f in fields:
        setattr(config, f, values[f])
    if fields:
        config.save(update_fields=fields + ['updated_at'])
    log_action(user=user, action='monitoring_config_update', object_type='patient', object_id=patient.id,
               detail={'fields': fields})
    return config


# ---------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------
def serialize_alert(alert: ClinicalAlert) -> dict:
    def ts(value):
        return value.isoformat() if value else None

    return {
        'id': alert.id,
        'patient_id': alert.patient_id,
        'workspace_id': alert.workspace_id,
        'alert_type': alert.alert_type,
        'severity': alert.severity,
        'title': alert.title,
        'description': alert.description,
        'trigger_data': alert.trigger_data,
        'urgency_level': alert.urgency_level,
        'requires_immediate_action': alert.requires_immediate_action,
        'status': alert.status,
        'acknowledged_by': alert.acknowledged_by_id,
        'acknowledged_at': ts(alert.acknowledged_at),
        'resolved_by': alert.resolved_by_id,
        'resolved_at': ts(alert.resolved_at),
        'resolution_notes': alert.resolution_notes,
        'dismissed_by': alert.dismissed_by_id,
        'dismissed_at': ts(alert.dismissed_at),
        'dismissal_reason': alert.dismissal_reason,
        'notification_sent': alert.notification_sent,
        'notification_channels': alert.notification_channels,
        'created_at': ts(alert.created_at),
    }


def create_vital_alert(patient: Patient, vital_name: str, value: float, threshold: dict) -> ClinicalAlert:
    metric = resolve_metric(vital_name)
    unit = UNITS.get(metric, '')
    critical_min = threshold.get('critical_min')
    critical_max = threshold.get('critical_max')
    severity = 'high'
    description = ''
    if critical_min is not None and value < critical_min:
        severity = 'critical'
        description = f'{vital_name} critically low: {value}{unit} (threshold: {critical_min}{unit})'
    elif critical_max is not None and value > critical_max:
        severity = 'critical'
        description = f'{vital_name} critically high: {value}{unit} (threshold: {critical_max}{unit})'

    alert = ClinicalAlert.objects.create(
        patient=patient,
        workspace_id=patient.workspace_id,
        alert_type='critical_value',
        severity=severity,
        title=f'Critical {vital_name}',
        description=description,
        trigger_data={
            'vital_name': vital_name,
            'value': value,
            'threshold': {'critical_min': critical_min, 'critical_max': critical_max},
            'unit': unit,
        },
        urgency_level=9,
        requires_immediate_action=True,
    )
    logger.warning('Critical %s=%s for patient %s', vital_name, value, patient.id,
                   extra={'patient_id': patient.id, 'workspace_id': patient.workspace_id})
    trigger_alert_notification(alert)
    publish_workspace_event(patient.workspace_id, 'alert.created', serialize_alert(alert))
    return alert


def trigger_alert_notification(alert: ClinicalAlert) -> int:
    """Notify the assigned clinician and configured recipients; returns how many were notified."""
    config = MonitoringConfig.objects.filter(patient_id=alert.patient_id).first()
    if config is None:
        return 0
    if alert.severity == 'critical' and not config.notify_on_critical:
        return 0

    patient = alert.patient
    user_ids = [patient.assigned_to_id]
    for recipient in config.notification_recipients or []:
        if isinstance(recipient, Mapping):
            user_ids.append(recipient.get('user_id'))

    sent = 0
    for user in recipients(user_ids):
        n = notify_ai_alert(user, patient, alert.alert_type, alert.description or alert.title,
                            alert.severity, alert_id=alert.id)
        if n is not None:
            sent += 1

    if sent:
        alert.notification_sent = True
        alert.notification_channels = ['push', 'in_app']
        alert.save(update_fields=['notification_sent', 'notification_channels', 'updated_at'])
        config.last_alert_at = timezone.now()
        config.save(update_fields=['last_alert_at', 'updated_at'])
    return sent


def check_vitals(patient: Patient, vital_signs: Mapping[str, Any], user=None) -> list[ClinicalAlert]:
    """Raise an alert for each numeric vital outside its critical range."""
    config = get_config(patient)
    thresholds = merged_thresholds(config.alert_thresholds if config else None)
    created = []
    with transaction.atomic():
        for name, value in (vital_signs or {}).items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            check = check_vital_thresholds(name, value, thresholds)
            if check.is_critical:
                created.append(create_vital_alert(patient, name, value, check.threshold))
    if created:
        log_action(user=user, action='vitals_alert', object_type='patient', object_id=patient.id,
                   detail={'alerts': [a.id for a in created]})
    return created


def get_alert(alert_id, workspace_ids) -> ClinicalAlert:
    alert = ClinicalAlert.objects.select_related('patient').filter(id=alert_id, workspace_id__in=workspace_ids).first()
    if alert is None:
        raise NotFound('alert not found')
    return alert


def _transition(alert: ClinicalAlert, status: str, user, **fields) -> ClinicalAlert:
    if alert.status in ('resolved', 'dismissed'):
        raise ValidationError({'status': f'alert is already {alert.status}'})
    alert.status = status
    for k, v in fields.items():
        setattr(alert, k, v)
    alert.save()
    log_action(user=user, action=f'alert_{status}', object_type='clinical_alert', object_id=alert.id)
    publish_workspace_event(alert.workspace_id, 'alert.updated', serialize_alert(alert))
    return alert


def acknowledge_alert(alert: ClinicalAlert, user) -> ClinicalAlert:
    return _transition(alert, 'acknowledged', user, acknowledged_by=user, acknowledged_at=timezone.now())


def resolve_alert(alert: ClinicalAlert, user, notes: str = '') -> ClinicalAlert:
    return _transition(alert, 'resolved', user, resolved_by=user, resolved_at=timezone.now(),
                       resolution_notes=notes or '')


def dismiss_alert(alert: ClinicalAlert, user, reason: str = '') -> ClinicalAlert:
    return _transition(alert, 'dismissed', user, dismissed_by=user, dismissed_at=timezone.now(),
                       dismissal_reason=reason or '')


def alert_statistics(workspace, period_hours: int = 24) -> dict:
    since = timezone.now() - timedelta(hours=period_hours)
    qs = ClinicalAlert.objects.filter(workspace=workspace, created_at__gte=since)
    by_severity = {s: 0 for s in ALERT_SEVERITIES}
    for row in qs.values('severity').annotate(n=Count('id')):
        by_severity[row['severity']] = row['n']
    by_type = {row['alert_type']: row['n'] for row in qs.values('alert_type').annotate(n=Count('id'))}
    by_status = {row['status']: row['n'] for row in qs.values('status').annotate(n=Count('id'))}
    total = sum(by_severity.values())
    return {
        'total': total,
        'by_severity': by_severity,
        'by_type': by_type,
        'by_status': by_status,
        'resolution_rate': (by_status.get('resolved', 0) / total) if total else 0,
        'period_hours': period_hours,
    }
