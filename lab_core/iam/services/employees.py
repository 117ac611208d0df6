# backend/lab_core/iam/services/employees.py
from __future__ import annotations

import logging
from typing import Iterable, Mapping

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from lab_core.audit.models import AuditAction, EmployeeAuditLog
from lab_core.audit.services import EmployeeAuditService
from lab_core.common.api.exceptions import ConflictError
from lab_core.iam.models import Employee, LocationGrant
from lab_core.tenants.models import Company, Location
from lab_core.tenants.selectors import get_location_or_none

logger = logging.getLogger(__name__)

User = get_user_model()


def _remove_company_memberships(user) -> int:
    """Drop the user from every company membership list. Returns how many lists changed."""
    through = Company.members.through
    removed, _ = through.objects.filter(user_id=user.id).delete()
    return removed


class EmployeeService:
    """
    Employee lifecycle (write-model boundary).
    Creation and deletion each touch several tables and commit as one unit.
    """

    @staticmethod
    def _resolve_grants(grants: Iterable[Mapping[str, str]]) -> list[Location]:
        locations: list[Location] = []
        for g in grants:
            loc = get_location_or_none(company_id=str(g["companyId"]), location_id=g["locationId"])
            if loc is None:
                raise ValidationError(f"Location {g['locationId']} not found for company {g['companyId']}")
            locations.append(loc)
        return locations

    @staticmethod
    @transaction.atomic
    def create(
        *,
        user_id: str,
        employee_id: str,
        name: str,
        password: str,
        role: str,
        grants: Iterable[Mapping[str, str]],
        email: str = "",
        performed_by: str,
    ) -> Employee:
        user_id = user_id.strip().lower()

        if User.objects.filter(username=user_id).exists():
            raise ConflictError("User ID already exists")
        if Employee.objects.filter(employee_id=employee_id).exists():
            raise ConflictError("Employee ID already exists")

        locations = EmployeeService._resolve_grants(grants)

        user = User.objects.create_user(username=user_id, password=password, email=email or "")
        employee = Employee.objects.create(
            user=user,
            employee_id=employee_id,
            name=name,
            email=email or "",
            role=role,
        )

        for loc in locations:
            LocationGrant.objects.get_or_create(employee=employee, location=loc, defaults={"company": loc.company})
            loc.company.members.add(user)

        EmployeeAuditService.log(
            action=AuditAction.CREATE,
            employee_id=employee.employee_id,
            user_id=user_id,
            performed_by=performed_by,
            details={
                "name": name,
                "role": role,
                "locations": [
                    {"companyId": loc.company.company_id, "locationId": loc.location_id} for loc in locations
                ],
            },
        )
        logger.info("Employee %s created by %s", employee.employee_id, performed_by)
        return employee

    @staticmethod
    @transaction.atomic
    def delete(*, user_id: str, performed_by: str) -> dict:
        """
        Deletes the employee, its login, its prior audit rows and its company
        memberships. Any failure rolls every step back.
        """
        employee = Employee.objects.select_related("user").filter(user__username=user_id).first()
        if employee is None:
            raise NotFound("Employee not found")

        user = employee.user
        snapshot = {
            "userId": user.username,
            "employeeId": employee.employee_id,
            "name": employee.name,
            "role": employee.role,
        }

        EmployeeAuditLog.objects.filter(user_id=user.username).delete()
        employee.delete()
        _remove_company_memberships(user)
        user.delete()

        EmployeeAuditService.log(
            action=AuditAction.DELETE,
            employee_id=snapshot["employeeId"],
            user_id=snapshot["userId"],
            performed_by=performed_by,
            details=snapshot,
        )
        logger.info("Employee %s deleted by %s", snapshot["employeeId"], performed_by)
        return snapshot
