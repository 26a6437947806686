import bleach
from rest_framework import serializers

from inventory.models import User


class LoginSerializer(serializers.Serializer):
    # email, employee id or username
    identifier = serializers.CharField(max_length=254)
    password = serializers.CharField(trim_whitespace=False)

    def validate_identifier(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Email or employee ID is required')
        return v


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=[r for r, _ in User.ROLE_CHOICES])
    departmentId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    employeeId = serializers.CharField(max_length=32, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)

    def validate_firstName(self, v):
        return bleach.clean(v.strip(), strip=True)

    def validate_lastName(self, v):
        return bleach.clean(v.strip(), strip=True)

    def validate_phone(self, v):
        return bleach.clean((v or '').strip(), strip=True)


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(trim_whitespace=False)
    newPassword = serializers.CharField(trim_whitespace=False)
    confirmPassword = serializers.CharField(trim_whitespace=False, required=False)

    def validate(self, attrs):
        confirm = attrs.get('confirmPassword')
        if confirm is not None and confirm != attrs['newPassword']:
            raise serializers.ValidationError({'confirmPassword': 'Passwords do not match'})
        return attrs


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)
    newPassword = serializers.CharField(trim_whitespace=False)
    confirmPassword = serializers.CharField(trim_whitespace=False, required=False)

    def validate(self, attrs):
        confirm = attrs.get('confirmPassword')
        if confirm is not None and confirm != attrs['newPassword']:
            raise serializers.ValidationError({'confirmPassword': 'Passwords do not match'})
        return attrs
