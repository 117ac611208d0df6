# backend/lab_core/iam/api/employees.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.views import APIView

from lab_core.common.api.responses import ok
from lab_core.common.permissions import ROLE_RANK, EmployeeAdminPermission, is_super_admin, role_rank
from lab_core.iam.api.serializers import EmployeeCreateSerializer, EmployeeReadSerializer
from lab_core.iam.models import Employee
from lab_core.iam.scope import SCOPE_DENIED_MSG, check_scope
from lab_core.iam.services.employees import EmployeeService
from lab_core.iam.services.membership import session_companies


def _granted_company_ids(request) -> set[str]:
    return {c.get("companyId") for c in session_companies(request)}


def _employee_company_ids(employee) -> set[str]:
    """Companies the employee holds a location grant in or is a member of."""
    companies = set(employee.grants.values_list("company__company_id", flat=True))
    companies.update(employee.user.companies.values_list("company_id", flat=True))
    return companies


class EmployeeListCreateView(APIView):
    permission_classes = [EmployeeAdminPermission]

    @extend_schema(
        tags=["Employees"],
        parameters=[OpenApiParameter("companyId", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False)],
        responses={200: EmployeeReadSerializer(many=True)},
    )
    def get(self, request):
        company_ids = _granted_company_ids(request)
        requested = (request.query_params.get("companyId") or "").strip().upper()
        if requested:
            if requested not in company_ids:
                raise PermissionDenied(SCOPE_DENIED_MSG)
            company_ids = {requested}

        qs = (
            Employee.objects.select_related("user")
            .filter(grants__company__company_id__in=company_ids)
            .distinct()
            .order_by("name")
        )
        return ok(EmployeeReadSerializer(qs, many=True).data)

    @extend_schema(tags=["Employees"], request=EmployeeCreateSerializer, responses={201: EmployeeReadSerializer})
    def post(self, request):
        serializer = EmployeeCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if ROLE_RANK.get(data["role"], 0) > role_rank(request.user):
            raise PermissionDenied("Cannot assign a role above your own")

        companies = session_companies(request)
        for g in data["grants"]:
            decision = check_scope(companies, g["companyId"].strip().upper(), g["locationId"].strip())
            if not decision.allowed:
                raise PermissionDenied(SCOPE_DENIED_MSG)

        employee = EmployeeService.create(
            user_id=data["userId"],
            employee_id=data["employeeId"],
            name=data["name"],
            password=data["password"],
            role=data["role"],
            email=data.get("email", ""),
            grants=data["grants"],
            performed_by=request.user.username,
        )
        return ok(EmployeeReadSerializer(employee).data, status=status.HTTP_201_CREATED)


class EmployeeDetailView(APIView):
    permission_classes = [EmployeeAdminPermission]

    @extend_schema(tags=["Employees"])
    def delete(self, request, user_id: str):
        user_id = user_id.strip().lower()
        employee = Employee.objects.select_related("user").filter(user__username=user_id).first()
        if employee is None:
            raise NotFound("Employee not found")

        # admins only manage employees of their own companies
        if not is_super_admin(request.user):
            if not _employee_company_ids(employee) & _granted_company_ids(request):
                raise PermissionDenied(SCOPE_DENIED_MSG)

        snapshot = EmployeeService.delete(user_id=user_id, performed_by=request.user.username)
        return ok(snapshot, message="Employee deleted successfully")
