from rest_framework import serializers

from clinical.models import Task


class CommaListField(serializers.ListField):
    """Accepts ``a,b`` as well as repeated query parameters."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [data]
        if isinstance(data, (list, tuple)):
            data = [part for item in data for part in str(item).split(',') if part]
        return super().to_internal_value(data)


class TaskListQuerySerializer(serializers.Serializer):
    workspace_id = serializers.IntegerField(min_value=1, required=False)
    patient_id = serializers.IntegerField(min_value=1, required=False)
    assigned_to = serializers.IntegerField(min_value=1, required=False)
    status = CommaListField(child=serializers.ChoiceField(choices=Task.STATUS_CHOICES), required=False)
    priority = CommaListField(child=serializers.ChoiceField(choices=Task.PRIORITY_CHOICES), required=False)
    category = CommaListField(child=serializers.ChoiceField(choices=Task.CATEGORY_CHOICES), required=False)
    is_overdue = serializers.BooleanField(required=False, allow_null=True, default=None)
    search = serializers.CharField(max_length=100, required=False)
    sort = serializers.ChoiceField(choices=['created_at', 'due_date'], required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)


class TaskCreateSerializer(serializers.Serializer):
    workspace_id = serializers.IntegerField(min_value=1)
    patient_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=Task.PRIORITY_CHOICES, required=False)
    status = serializers.ChoiceField(choices=Task.STATUS_CHOICES, required=False)
    category = serializers.ChoiceField(choices=Task.CATEGORY_CHOICES, required=False)
    assigned_to = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    due_date = serializers.DateTimeField(required=False, allow_null=True)
    checklist = serializers.ListField(child=serializers.CharField(max_length=255), required=False, default=list)


class TaskUpdateSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    priority = serializers.ChoiceField(choices=Task.PRIORITY_CHOICES, required=False)
    status = serializers.ChoiceField(choices=Task.STATUS_CHOICES, required=False)
    category = serializers.ChoiceField(choices=Task.CATEGORY_CHOICES, required=False)
    assigned_to = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    due_date = serializers.DateTimeField(required=False, allow_null=True)


class ChecklistItemSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)


class ChecklistToggleSerializer(serializers.Serializer):
    is_completed = serializers.BooleanField(required=False, allow_null=True, default=None)


class CommentSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=5000)
