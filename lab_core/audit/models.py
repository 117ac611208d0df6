# backend/lab_core/audit/models.py
import uuid

from django.db import models


class AuditAction(models.TextChoices):
    CREATE = "CREATE", "Create"
    UPDATE = "UPDATE", "Update"
    DELETE = "DELETE", "Delete"


class ImmutableAuditError(RuntimeError):
    """Raised on any attempt to change or remove a written audit row."""


class AppendOnlyQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableAuditError("Audit records cannot be updated.")

    def delete(self):
        raise ImmutableAuditError("Audit records cannot be deleted.")


class MasterDataAuditLog(models.Model):
    """
    Immutable audit record for master-data mutations.
    Append-only: rows are inserted once and never touched again.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    data_type = models.CharField(max_length=64, db_index=True)  # e.g. "apis", "chemicals"
    user_id = models.CharField(max_length=150)  # actor login id
    action = models.CharField(max_length=8, choices=AuditAction.choices, db_index=True)

    data = models.JSONField(null=True, blank=True)
    previous_data = models.JSONField(null=True, blank=True)

    company_id = models.CharField(max_length=64)
    location_id = models.CharField(max_length=64)

    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = AppendOnlyQuerySet.as_manager()

    class Meta:
        db_table = "audit_master_data_log"
        ordering = ("-timestamp",)
        indexes = [
            models.Index(fields=["company_id", "location_id", "data_type", "timestamp"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableAuditError("Audit records cannot be updated.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableAuditError("Audit records cannot be deleted.")

    def __str__(self) -> str:
        return f"{self.data_type} {self.action} by {self.user_id}"


class EmployeeAuditLog(models.Model):
    """
    Employee administration trail.

    Unlike master-data audit rows these are purged together with the employee
    they describe; the purge and the final DELETE row share one transaction.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    employee_id = models.CharField(max_length=64, db_index=True)
    user_id = models.CharField(max_length=150, db_index=True)
    action = models.CharField(max_length=8, choices=AuditAction.choices)
    performed_by = models.CharField(max_length=150)
    details = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "audit_employee_log"
        ordering = ("-timestamp",)

    def __str__(self) -> str:
        return f"{self.employee_id} {self.action} by {self.performed_by}"
