from rest_framework import serializers

from clinical.models import ClinicalAlert

THRESHOLD_KEYS = ('min', 'max', 'critical_min', 'critical_max')


class RecipientSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    channels = serializers.ListField(child=serializers.CharField(max_length=20), required=False, default=list)


class MonitoringConfigSerializer(serializers.Serializer):
    auto_analysis_enabled = serializers.BooleanField(required=False)
    analysis_frequency_minutes = serializers.IntegerField(min_value=5, max_value=1440, required=False)
    monitored_metrics = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    alert_thresholds = serializers.DictField(child=serializers.DictField(), required=False)
    notify_on_critical = serializers.BooleanField(required=False)
    notify_on_deterioration = serializers.BooleanField(required=False)
    notify_on_improvement = serializers.BooleanField(required=False)
    notification_recipients = RecipientSerializer(many=True, required=False)
    is_active = serializers.BooleanField(required=False)

    def validate_alert_thresholds(self, v):
        for metric, limits in v.items():
            for key, value in limits.items():
                if key not in THRESHOLD_KEYS:
                    raise serializers.ValidationError(f'{metric}: unknown threshold {key!r}')
                if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                    raise serializers.ValidationError(f'{metric}.{key} must be a number')
        return v


class AlertListQuerySerializer(serializers.Serializer):
    workspace_id = serializers.IntegerField(min_value=1, required=False)
    patient_id = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=ClinicalAlert.STATUS_CHOICES, required=False)
    severity = serializers.ChoiceField(choices=ClinicalAlert.SEVERITY_CHOICES, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=200, required=False)


class AlertActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=['acknowledge', 'resolve', 'dismiss'])
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class AlertStatsQuerySerializer(serializers.Serializer):
    workspace_id = serializers.IntegerField(min_value=1)
    period_hours = serializers.IntegerField(min_value=1, max_value=24 * 90, required=False, default=24)


class VitalCheckSerializer(serializers.Serializer):
    vital_signs = serializers.DictField()
