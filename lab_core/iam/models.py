# backend/lab_core/iam/models.py
import uuid

from django.conf import settings
from django.db import models

from lab_core.tenants.models import Company, Location


class EmployeeRole(models.TextChoices):
    SUPER_ADMIN = "super_admin", "Super admin"
    ADMIN = "admin", "Admin"
    EMPLOYEE = "employee", "Employee"


class Employee(models.Model):
    """
    Lab employee profile anchored to Django's AUTH_USER_MODEL.
    The login id (userId in the API) is the user's username.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="employee")
    employee_id = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default="")
    role = models.CharField(max_length=16, choices=EmployeeRole.choices, default=EmployeeRole.EMPLOYEE)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_employee"
        ordering = ("name",)
        indexes = [
            models.Index(fields=["role"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.employee_id})"


class LocationGrant(models.Model):
    """
    Grants an employee access to one (company, location) scope.
    This is the source of the session's company/location grants.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name="grants")
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="grants")
    location = models.ForeignKey(Location, on_delete=models.CASCADE, related_name="grants")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "iam_location_grant"
        constraints = [
            models.UniqueConstraint(fields=["employee", "location"], name="uq_grant_employee_location"),
        ]
        indexes = [
            models.Index(fields=["company", "location"]),
        ]

    def __str__(self) -> str:
        return f"{self.employee.employee_id} -> {self.company.company_id}/{self.location.location_id}"
