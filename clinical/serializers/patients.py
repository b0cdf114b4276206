from rest_framework import serializers

from clinical.models import Patient, PatientData, PatientTest


class PatientListQuerySerializer(serializers.Serializer):
    workflow_state = serializers.ChoiceField(choices=Patient.WORKFLOW_CHOICES, required=False)
    assigned_to = serializers.IntegerField(min_value=1, required=False)
    category = serializers.CharField(max_length=100, required=False)
    search = serializers.CharField(max_length=100, required=False)
    include_discharged = serializers.BooleanField(required=False, default=False)
    page = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)


class PatientSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    age = serializers.IntegerField(min_value=0, max_value=130, required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=Patient.GENDER_CHOICES, required=False, allow_null=True)
    admission_date = serializers.DateTimeField(required=False)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    workflow_state = serializers.ChoiceField(choices=Patient.WORKFLOW_CHOICES, required=False)
    assigned_to = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    def validate_workflow_state(self, v):
        if v == 'discharged':
            raise serializers.ValidationError('use the discharge endpoint to discharge a patient')
        return v


class WorkflowSerializer(serializers.Serializer):
    workflow_state = serializers.ChoiceField(choices=Patient.WORKFLOW_CHOICES)


class DischargeSerializer(serializers.Serializer):
    discharge_date = serializers.DateTimeField(required=False)


class PatientDataSerializer(serializers.Serializer):
    data_type = serializers.ChoiceField(choices=PatientData.DATA_TYPE_CHOICES)
    content = serializers.JSONField()

    def validate_content(self, v):
        if not isinstance(v, dict):
            raise serializers.ValidationError('content must be an object')
        return v


class PatientTestSerializer(serializers.Serializer):
    test_type = serializers.ChoiceField(choices=PatientTest.TEST_TYPE_CHOICES, default='laboratory')
    test_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    results = serializers.JSONField()

    def validate_results(self, v):
        if not isinstance(v, dict):
            raise serializers.ValidationError('results must be an object')
        return v


class RecordQuerySerializer(serializers.Serializer):
    type = serializers.CharField(max_length=20, required=False)
