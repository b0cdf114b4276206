from rest_framework import serializers


class ProtocolQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=100, required=False)
    category = serializers.CharField(max_length=100, required=False)
    workspace_id = serializers.IntegerField(min_value=1, required=False)
    favorites = serializers.BooleanField(required=False, default=False)


class ProtocolSerializer(serializers.Serializer):
    workspace_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    title = serializers.CharField(max_length=255)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    content = serializers.CharField(required=False, allow_blank=True)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    is_published = serializers.BooleanField(required=False)


class ProtocolUpdateSerializer(ProtocolSerializer):
    title = serializers.CharField(max_length=255, required=False)
