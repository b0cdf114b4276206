from rest_framework import serializers

from clinical.models import CHECKLIST_PRIORITY_CHOICES, Handoff, HandoffChecklistItem


class HandoffListQuerySerializer(serializers.Serializer):
    workspace_id = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=Handoff.STATUS_CHOICES, required=False)
    mine = serializers.BooleanField(required=False, default=False)
    page = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)


class HandoffPatientSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)
    summary = serializers.CharField(required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=CHECKLIST_PRIORITY_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class HandoffChecklistSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    title = serializers.CharField(max_length=255)
    priority = serializers.ChoiceField(choices=CHECKLIST_PRIORITY_CHOICES, required=False)
    category = serializers.ChoiceField(choices=HandoffChecklistItem.CATEGORY_CHOICES, required=False)


class HandoffCreateSerializer(serializers.Serializer):
    workspace_id = serializers.IntegerField(min_value=1)
    to_user = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(choices=Handoff.STATUS_CHOICES, required=False)
    summary = serializers.CharField(required=False, allow_blank=True)
    content = serializers.JSONField(required=False)
    patients = HandoffPatientSerializer(many=True, required=False)
    checklist = HandoffChecklistSerializer(many=True, required=False)


class HandoffUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Handoff.STATUS_CHOICES, required=False)
    summary = serializers.CharField(required=False, allow_blank=True)
    content = serializers.JSONField(required=False)


class HandoffGenerateSerializer(serializers.Serializer):
    workspace_id = serializers.IntegerField(min_value=1)
    from_user = serializers.IntegerField(min_value=1, required=False)
    to_user = serializers.IntegerField(min_value=1)
    patient_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
