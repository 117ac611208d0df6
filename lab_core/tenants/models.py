# backend/lab_core/tenants/models.py
import uuid

from django.conf import settings
from django.db import models


class Company(models.Model):
    """
    Top-level organization.
    Root of all scoping in the system.
    NOT a ScopedModel (it *is* the tenant).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    company_id = models.CharField(max_length=64, unique=True)  # uppercase business code
    name = models.CharField(max_length=255)
    created_by = models.CharField(max_length=150, blank=True, default="")

    # company membership list (user ids allowed to log into this company)
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="companies",
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tenants_company"
        ordering = ("company_id",)

    def save(self, *args, **kwargs):
        self.company_id = (self.company_id or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} ({self.company_id})"


class Location(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="locations")
    location_id = models.CharField(max_length=64, blank=True)
    name = models.CharField(max_length=255)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tenants_location"
        ordering = ("name",)
        constraints = [
            models.UniqueConstraint(fields=["company", "location_id"], name="uq_location_company_location_id"),
        ]

    def save(self, *args, **kwargs):
        if not self.location_id:
            self.location_id = str(uuid.uuid4())
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} ({self.company.company_id}/{self.location_id})"
