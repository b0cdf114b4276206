from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('username cannot be blank')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('password cannot be blank')
        return v


class RefreshSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False)
