# backend/lab_core/masterdata/models.py
from __future__ import annotations

from django.db import models

from lab_core.common.models import ScopedModel


class MasterRecord(ScopedModel):
    """
    Base for every scoped master-data registry.
    Subclasses declare KEY_FIELD and a (key, company_id, location_id) unique constraint.
    """
    KEY_FIELD: str = ""

    description = models.CharField(max_length=500, blank=True, default="")

    created_by = models.CharField(max_length=150, blank=True, default="")
    updated_by = models.CharField(max_length=150, blank=True, default="")

    class Meta:
        abstract = True

    @property
    def key_value(self) -> str:
        return getattr(self, self.KEY_FIELD)

    def __str__(self) -> str:
        return f"{self.key_value} ({self.company_id}/{self.location_id})"


def _scoped_unique(field: str, name: str) -> models.UniqueConstraint:
    return models.UniqueConstraint(fields=[field, "company_id", "location_id"], name=name)


class Api(MasterRecord):
    KEY_FIELD = "api"

    api = models.CharField(max_length=100)

    class Meta:
        db_table = "masterdata_api"
        ordering = ("api",)
        constraints = [_scoped_unique("api", "uq_api_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]


class Chemical(MasterRecord):
    KEY_FIELD = "chemical_name"

    chemical_name = models.CharField(max_length=100)
    is_solvent = models.BooleanField(default=False)
    is_buffer = models.BooleanField(default=False)

    class Meta:
        db_table = "masterdata_chemical"
        ordering = ("chemical_name",)
        constraints = [_scoped_unique("chemical_name", "uq_chemical_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]


class Column(MasterRecord):
    KEY_FIELD = "column_code"

    column_code = models.CharField(max_length=100)
    # list of column description objects (carbon type, make, dimensions, pH range, ...)
    descriptions = models.JSONField(default=list)

    class Meta:
        db_table = "masterdata_column"
        ordering = ("column_code",)
        constraints = [_scoped_unique("column_code", "uq_column_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]


class DetectorType(MasterRecord):
    KEY_FIELD = "detector_type"

    detector_type = models.CharField(max_length=100)

    class Meta:
        db_table = "masterdata_detector_type"
        ordering = ("detector_type",)
        constraints = [_scoped_unique("detector_type", "uq_detector_type_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]


class Department(MasterRecord):
    KEY_FIELD = "department"

    department = models.CharField(max_length=100)
    days_of_urgency = models.PositiveSmallIntegerField(default=0)

    class Meta:
        db_table = "masterdata_department"
        ordering = ("department",)
        constraints = [_scoped_unique("department", "uq_department_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]


class Make(MasterRecord):
    KEY_FIELD = "make"

    make = models.CharField(max_length=100)

    class Meta:
        db_table = "masterdata_make"
        ordering = ("make",)
        constraints = [_scoped_unique("make", "uq_make_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]


class Pharmacopeial(MasterRecord):
    KEY_FIELD = "pharmacopeial"

    pharmacopeial = models.CharField(max_length=100)

    class Meta:
        db_table = "masterdata_pharmacopeial"
        ordering = ("pharmacopeial",)
        constraints = [_scoped_unique("pharmacopeial", "uq_pharmacopeial_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]


class TestType(MasterRecord):
    KEY_FIELD = "test_type"

    test_type = models.CharField(max_length=100)

    class Meta:
        db_table = "masterdata_test_type"
        ordering = ("test_type",)
        constraints = [_scoped_unique("test_type", "uq_test_type_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]


class MobilePhase(MasterRecord):
    KEY_FIELD = "mobile_phase_code"

    mobile_phase_id = models.CharField(max_length=50, blank=True, default="")
    mobile_phase_code = models.CharField(max_length=20)

    is_solvent = models.BooleanField(default=False)
    is_buffer = models.BooleanField(default=False)
    solvent_name = models.CharField(max_length=100, blank=True, default="")
    buffer_name = models.CharField(max_length=100, blank=True, default="")
    ph_value = models.FloatField(null=True, blank=True)
    dilution_factor = models.FloatField(null=True, blank=True)

    # Chemical ids (same scope)
    chemicals = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "masterdata_mobile_phase"
        ordering = ("mobile_phase_code",)
        constraints = [_scoped_unique("mobile_phase_code", "uq_mobile_phase_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]

    def save(self, *args, **kwargs):
        # dependent fields only exist while their flag is set
        if not self.is_solvent:
            self.solvent_name = ""
        if not self.is_buffer:
            self.buffer_name = ""
            self.ph_value = None
        super().save(*args, **kwargs)


class InstrumentType(models.TextChoices):
    HPLC = "HPLC", "HPLC"
    UPLC = "UPLC", "UPLC"


class Hplc(MasterRecord):
    KEY_FIELD = "internal_code"

    internal_code = models.CharField(max_length=50)
    type = models.CharField(max_length=8, choices=InstrumentType.choices)
    # DetectorType ids (same scope)
    detector = models.JSONField(default=list)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "masterdata_hplc"
        ordering = ("internal_code",)
        constraints = [_scoped_unique("internal_code", "uq_hplc_scope")]
        indexes = [models.Index(fields=["company_id", "location_id"])]
