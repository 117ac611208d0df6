# backend/lab_core/iam/api/serializers.py
from __future__ import annotations

from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from lab_core.iam.models import Employee, EmployeeRole
from lab_core.iam.services.membership import COMPANIES_CLAIM, list_user_companies


class LabTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Embeds role and company/location grants in the token so the grant set is
    fixed for the life of the session.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        employee = getattr(user, "employee", None)
        token["role"] = employee.role if employee is not None else None
        token[COMPANIES_CLAIM] = list_user_companies(user.id)
        return token


class LoginRequestSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)


class DetailResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()


_PASSWORDS_REQUIRED = "Current password and new password are required"


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        error_messages={"required": _PASSWORDS_REQUIRED, "blank": _PASSWORDS_REQUIRED, "null": _PASSWORDS_REQUIRED},
    )
    newPassword = serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        min_length=6,
        error_messages={
            "required": _PASSWORDS_REQUIRED,
            "blank": _PASSWORDS_REQUIRED,
            "null": _PASSWORDS_REQUIRED,
            "min_length": "New password must be at least 6 characters",
        },
    )

    def validate_currentPassword(self, value: str) -> str:
        if not self.context["request"].user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect")
        return value


class LocationGrantInputSerializer(serializers.Serializer):
    companyId = serializers.CharField(max_length=64)
    locationId = serializers.CharField(max_length=64)


class EmployeeCreateSerializer(serializers.Serializer):
    userId = serializers.CharField(
        max_length=150,
        error_messages={"required": "User ID is required", "blank": "User ID is required"},
    )
    employeeId = serializers.CharField(
        max_length=64,
        error_messages={"required": "Employee ID is required", "blank": "Employee ID is required"},
    )
    name = serializers.CharField(
        max_length=255,
        error_messages={"required": "Name is required", "blank": "Name is required"},
    )
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    password = serializers.CharField(
        write_only=True,
        min_length=6,
        error_messages={
            "required": "Password is required",
            "blank": "Password is required",
            "min_length": "Password must be at least 6 characters",
        },
    )
    role = serializers.ChoiceField(
        choices=EmployeeRole.choices,
        default=EmployeeRole.EMPLOYEE,
        error_messages={"invalid_choice": "Invalid role"},
    )
    grants = LocationGrantInputSerializer(many=True, allow_empty=False)

    def validate_userId(self, value: str) -> str:
        return value.lower()


class EmployeeReadSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source="user.username", read_only=True)
    employeeId = serializers.CharField(source="employee_id", read_only=True)
    companies = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Employee
        fields = ["id", "userId", "employeeId", "name", "email", "role", "companies", "createdAt", "updatedAt"]

    def get_companies(self, obj: Employee) -> list[dict]:
        return list_user_companies(obj.user_id)
