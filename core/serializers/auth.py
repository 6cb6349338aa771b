from rest_framework import serializers

from core.models import Role


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()
    instituteId = serializers.CharField()
    userType = serializers.ChoiceField(choices=Role.choices)

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Username is required')
        return v


class GuestLoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField()
    newPassword = serializers.CharField(min_length=6, error_messages={
        'min_length': 'New password must be at least 6 characters',
    })


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()
    instituteId = serializers.CharField()


class ResetPasswordSerializer(serializers.Serializer):
    uid = serializers.CharField()
    resetToken = serializers.CharField()
    newPassword = serializers.CharField(min_length=6, error_messages={
        'min_length': 'Password must be at least 6 characters',
    })


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False, allow_blank=True)
