from rest_framework import serializers

from clinical.models import CalculatorResult


class AutoFillQuerySerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)
    calculator_type = serializers.ChoiceField(choices=CalculatorResult.CALCULATOR_CHOICES)


class CalculateSerializer(serializers.Serializer):
    # unknown types are rejected by the scoring layer with its own error code
    calculator_type = serializers.CharField(max_length=20)
    input_data = serializers.JSONField()
    workspace_id = serializers.IntegerField(min_value=1, required=False)
    patient_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get('workspace_id') and not attrs.get('patient_id'):
            raise serializers.ValidationError('workspace_id or patient_id is required')
        return attrs


class HistoryQuerySerializer(serializers.Serializer):
    workspace_id = serializers.IntegerField(min_value=1, required=False)
    patient_id = serializers.IntegerField(min_value=1, required=False)
    calculator_type = serializers.ChoiceField(choices=CalculatorResult.CALCULATOR_CHOICES, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=200, required=False, default=50)
