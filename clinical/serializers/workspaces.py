from rest_framework import serializers

from clinical.models import WorkspaceMember


class OrganizationSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)


class WorkspaceSerializer(serializers.Serializer):
    organization_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    name = serializers.CharField(max_length=255)
    color = serializers.RegexField(r'^#[0-9a-fA-F]{6}$', required=False)
    description = serializers.CharField(required=False, allow_blank=True)


class WorkspaceUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    color = serializers.RegexField(r'^#[0-9a-fA-F]{6}$', required=False)
    description = serializers.CharField(required=False, allow_blank=True)


class MemberAddSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1, required=False)
    email = serializers.EmailField(required=False)
    role = serializers.ChoiceField(choices=WorkspaceMember.ROLE_CHOICES, required=False)

    def validate(self, attrs):
        if not attrs.get('user_id') and not attrs.get('email'):
            raise serializers.ValidationError('user_id or email is required')
        return attrs


class MemberRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=WorkspaceMember.ROLE_CHOICES)
