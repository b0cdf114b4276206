from rest_framework import serializers

from clinical.models import Notification
from clinical.serializers.tasks import CommaListField


class NotificationListQuerySerializer(serializers.Serializer):
    is_read = serializers.BooleanField(required=False, allow_null=True, default=None)
    severity = CommaListField(child=serializers.ChoiceField(choices=Notification.SEVERITY_CHOICES), required=False)
    type = CommaListField(child=serializers.ChoiceField(choices=Notification.TYPE_CHOICES), required=False)
    related_patient_id = serializers.IntegerField(min_value=1, required=False)
    related_workspace_id = serializers.IntegerField(min_value=1, required=False)
    created_after = serializers.DateTimeField(required=False)
    created_before = serializers.DateTimeField(required=False)
    limit = serializers.IntegerField(min_value=1, max_value=200, required=False)
    offset = serializers.IntegerField(min_value=0, required=False)


class PreferencesSerializer(serializers.Serializer):
    email = serializers.BooleanField(required=False)
    push = serializers.BooleanField(required=False)
    sms = serializers.BooleanField(required=False)
    mention = serializers.BooleanField(required=False)
    assignment = serializers.BooleanField(required=False)
    critical_alerts = serializers.BooleanField(required=False)
    patient_updates = serializers.BooleanField(required=False)
    ai_alerts = serializers.BooleanField(required=False)
    quiet_hours_enabled = serializers.BooleanField(required=False)
    quiet_hours_start = serializers.TimeField(required=False, input_formats=['%H:%M', '%H:%M:%S'])
    quiet_hours_end = serializers.TimeField(required=False, input_formats=['%H:%M', '%H:%M:%S'])
