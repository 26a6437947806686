import bleach
from rest_framework import serializers

from inventory.models import User
from inventory.permissions import ALL_PERMISSIONS

ROLES = [r for r, _ in User.ROLE_CHOICES]
STATUSES = [s for s, _ in User.STATUS_CHOICES]


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    firstName = serializers.CharField(max_length=150)
    lastName = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=ROLES)
    departmentId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    employeeId = serializers.CharField(max_length=32, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    permissions = serializers.ListField(
        child=serializers.ChoiceField(choices=ALL_PERMISSIONS), required=False, allow_empty=True
    )
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_firstName(self, v):
        return _clean(v)

    def validate_lastName(self, v):
        return _clean(v)

    def validate_phone(self, v):
        return _clean(v)

    def validate_notes(self, v):
        return _clean(v)


class UserUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False)
    firstName = serializers.CharField(max_length=150, required=False)
    lastName = serializers.CharField(max_length=150, required=False)
    role = serializers.ChoiceField(choices=ROLES, required=False)
    departmentId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    employeeId = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    permissions = serializers.ListField(
        child=serializers.ChoiceField(choices=ALL_PERMISSIONS), required=False, allow_empty=True
    )
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_firstName(self, v):
        return _clean(v)

    def validate_lastName(self, v):
        return _clean(v)

    def validate_phone(self, v):
        return _clean(v)

    def validate_notes(self, v):
        return _clean(v)


class UserListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=ROLES, required=False)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    departmentId = serializers.IntegerField(min_value=1, required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=200, required=False)


class SuspendSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)

    def validate_reason(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('A reason is required')
        return v


class AdminResetPasswordSerializer(serializers.Serializer):
    newPassword = serializers.CharField(trim_whitespace=False)


class DepartmentSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    code = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate_name(self, v):
        v = _clean(v)
        if len(v) < 2:
            raise serializers.ValidationError('Department name must be at least 2 characters')
        return v
