# backend/lab_core/masterdata/api/serializers.py
from __future__ import annotations

import uuid

from rest_framework import serializers

from lab_core.masterdata.models import (
    Api,
    Chemical,
    Column,
    Department,
    DetectorType,
    Hplc,
    InstrumentType,
    Make,
    MobilePhase,
    Pharmacopeial,
    TestType,
)


def key_field(label: str, source: str | None = None, max_length: int = 100) -> serializers.CharField:
    """
    Required, trimmed, length-bounded natural key with human-readable messages.
    Pass `source` only when the model field is named differently.
    """
    required_msg = f"{label} is required"
    extra = {"source": source} if source else {}
    return serializers.CharField(
        **extra,
        max_length=max_length,
        error_messages={
            "required": required_msg,
            "blank": required_msg,
            "null": required_msg,
            "max_length": f"{label} cannot exceed {max_length} characters",
        },
    )


def description_field(source: str | None = None) -> serializers.CharField:
    extra = {"source": source} if source else {}
    return serializers.CharField(
        **extra,
        required=False,
        allow_blank=True,
        default="",
        max_length=500,
        error_messages={"max_length": "Description cannot exceed 500 characters"},
    )


def required_bool(name: str, source: str) -> serializers.BooleanField:
    return serializers.BooleanField(
        source=source,
        error_messages={"required": f"{name} is required", "null": f"{name} is required"},
    )


class MasterWriteSerializer(serializers.Serializer):
    """
    Base for entity payloads. Field names are the client's camelCase names;
    `source` maps them onto model fields so validated_data is ready for the ORM.

    Cross-reference checks read the tenant scope from context["scope"].
    """

    @property
    def scope(self):
        return self.context["scope"]


class MasterReadSerializer(serializers.ModelSerializer):
    companyId = serializers.CharField(source="company_id", read_only=True)
    locationId = serializers.CharField(source="location_id", read_only=True)
    createdBy = serializers.CharField(source="created_by", read_only=True)
    updatedBy = serializers.CharField(source="updated_by", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    AUDIT_FIELDS = ["companyId", "locationId", "createdBy", "updatedBy", "createdAt", "updatedAt"]


# --- API -------------------------------------------------------------------

class ApiWriteSerializer(MasterWriteSerializer):
    api = key_field("API name")
    desc = description_field("description")


class ApiReadSerializer(MasterReadSerializer):
    desc = serializers.CharField(source="description", read_only=True)

    class Meta:
        model = Api
        fields = ["id", "api", "desc"] + MasterReadSerializer.AUDIT_FIELDS


# --- Chemical --------------------------------------------------------------

class ChemicalWriteSerializer(MasterWriteSerializer):
    chemicalName = key_field("Chemical name", "chemical_name")
    isSolvent = required_bool("isSolvent", "is_solvent")
    isBuffer = required_bool("isBuffer", "is_buffer")
    desc = description_field("description")


class ChemicalReadSerializer(MasterReadSerializer):
    chemicalName = serializers.CharField(source="chemical_name", read_only=True)
    isSolvent = serializers.BooleanField(source="is_solvent", read_only=True)
    isBuffer = serializers.BooleanField(source="is_buffer", read_only=True)
    desc = serializers.CharField(source="description", read_only=True)

    class Meta:
        model = Chemical
        fields = ["id", "chemicalName", "isSolvent", "isBuffer", "desc"] + MasterReadSerializer.AUDIT_FIELDS


# --- Column ----------------------------------------------------------------

class ColumnDescriptionSerializer(serializers.Serializer):
    descriptionId = serializers.CharField(required=False, allow_blank=True)
    carbonType = serializers.CharField(
        max_length=100,
        error_messages={"required": "Carbon Type is required", "blank": "Carbon Type is required"},
    )
    linkedCarbonType = serializers.CharField(required=False, allow_blank=True, default="")
    innerDiameter = serializers.FloatField(
        required=False, default=0, min_value=0,
        error_messages={"min_value": "Inner Diameter cannot be negative"},
    )
    length = serializers.FloatField(
        required=False, default=0, min_value=0,
        error_messages={"min_value": "Length cannot be negative"},
    )
    particleSize = serializers.FloatField(
        required=False, default=0, min_value=0,
        error_messages={"min_value": "Particle Size cannot be negative"},
    )
    makeId = serializers.UUIDField(
        error_messages={"required": "Make is required", "null": "Make is required", "invalid": "Invalid make"},
    )
    columnId = serializers.CharField(
        max_length=100,
        error_messages={"required": "Column ID is required", "blank": "Column ID is required"},
    )
    installationDate = serializers.DateField(
        error_messages={"required": "Installation Date is required", "null": "Installation Date is required"},
    )
    usePrefix = serializers.BooleanField(required=False, default=False)
    useSuffix = serializers.BooleanField(required=False, default=False)
    isObsolete = serializers.BooleanField(required=False, default=False)
    description = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)
    phMin = serializers.FloatField(
        required=False, allow_null=True, default=None, min_value=0, max_value=14,
        error_messages={"min_value": "pH Min must be between 0 and 14", "max_value": "pH Min must be between 0 and 14"},
    )
    phMax = serializers.FloatField(
        required=False, allow_null=True, default=None, min_value=0, max_value=14,
        error_messages={"min_value": "pH Max must be between 0 and 14", "max_value": "pH Max must be between 0 and 14"},
    )

    def validate(self, attrs):
        ph_min, ph_max = attrs.get("phMin"), attrs.get("phMax")
        if ph_min is not None and ph_max is not None and ph_min > ph_max:
            raise serializers.ValidationError("pH Min cannot be greater than pH Max")

        # stored as JSON; missing descriptionIds are filled in by the parent serializer
        attrs["descriptionId"] = attrs.get("descriptionId") or ""
        attrs["makeId"] = str(attrs["makeId"])
        attrs["installationDate"] = attrs["installationDate"].isoformat()
        return attrs


class ColumnWriteSerializer(MasterWriteSerializer):
    columnCode = key_field("Column code", "column_code")
    descriptions = ColumnDescriptionSerializer(
        many=True,
        allow_empty=False,
        error_messages={"required": "Descriptions are required", "empty": "At least one description is required"},
    )

    def validate_descriptions(self, value):
        make_ids = {d["makeId"] for d in value}
        found = set(
            str(pk) for pk in Make.objects.filter(id__in=make_ids, **self.scope.as_filter()).values_list("id", flat=True)
        )
        missing = [i + 1 for i, d in enumerate(value) if d["makeId"] not in found]
        if missing:
            raise serializers.ValidationError(
                [f"Make not found for description {i}" for i in missing]
            )
        return self._fill_description_ids(value)

    def _fill_description_ids(self, value):
        """
        Updates keep the stored descriptionId of a description sent without one,
        matched by columnId and then by position.
        """
        existing = list(self.instance.descriptions or []) if self.instance is not None else []
        by_column_id = {d.get("columnId"): d.get("descriptionId") for d in existing if d.get("descriptionId")}
        taken = {d["descriptionId"] for d in value if d["descriptionId"]}
        # ids whose columnId is still in the payload belong to that description
        sent_column_ids = {d["columnId"] for d in value}
        taken.update(i for c, i in by_column_id.items() if c in sent_column_ids)
        for idx, desc in enumerate(value):
            if desc["descriptionId"]:
                continue
            candidate = by_column_id.pop(desc["columnId"], None)
            if not candidate and idx < len(existing):
                candidate = existing[idx].get("descriptionId")
                if candidate in taken:
                    candidate = None
            desc["descriptionId"] = candidate or uuid.uuid4().hex
            taken.add(desc["descriptionId"])
        return value


class ColumnReadSerializer(MasterReadSerializer):
    columnCode = serializers.CharField(source="column_code", read_only=True)

    class Meta:
        model = Column
        fields = ["id", "columnCode", "descriptions"] + MasterReadSerializer.AUDIT_FIELDS


class ColumnDetailReadSerializer(ColumnReadSerializer):
    """Single column with its lifecycle status derived from the descriptions."""
    isObsolete = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()
    descriptionsCount = serializers.SerializerMethodField()

    class Meta(ColumnReadSerializer.Meta):
        fields = ColumnReadSerializer.Meta.fields + ["isObsolete", "status", "descriptionsCount"]

    def get_isObsolete(self, obj) -> bool:
        descriptions = obj.descriptions or []
        return bool(descriptions) and all(d.get("isObsolete") for d in descriptions)

    def get_status(self, obj) -> str:
        return "obsolete" if self.get_isObsolete(obj) else "active"

    def get_descriptionsCount(self, obj) -> int:
        return len(obj.descriptions or [])


class ObsoleteColumnRequestSerializer(serializers.Serializer):
    id = serializers.UUIDField(
        error_messages={"required": "Column ID is required", "null": "Column ID is required", "invalid": "Invalid column ID"},
    )
    descriptionIds = serializers.ListField(
        child=serializers.CharField(), required=False, default=list,
    )


# --- Simple registries (key + description) ---------------------------------

class DetectorTypeWriteSerializer(MasterWriteSerializer):
    detectorType = key_field("Detector type", "detector_type")
    description = description_field()


class DetectorTypeReadSerializer(MasterReadSerializer):
    detectorType = serializers.CharField(source="detector_type", read_only=True)

    class Meta:
        model = DetectorType
        fields = ["id", "detectorType", "description"] + MasterReadSerializer.AUDIT_FIELDS


class DepartmentWriteSerializer(MasterWriteSerializer):
    department = key_field("Department name")
    description = description_field()
    daysOfUrgency = serializers.IntegerField(
        source="days_of_urgency",
        required=False,
        default=0,
        min_value=0,
        max_value=30,
        error_messages={
            "min_value": "Days of urgency must be between 0 and 30",
            "max_value": "Days of urgency must be between 0 and 30",
            "invalid": "Days of urgency must be a number",
        },
    )


class DepartmentReadSerializer(MasterReadSerializer):
    daysOfUrgency = serializers.IntegerField(source="days_of_urgency", read_only=True)

    class Meta:
        model = Department
        fields = ["id", "department", "description", "daysOfUrgency"] + MasterReadSerializer.AUDIT_FIELDS


class MakeWriteSerializer(MasterWriteSerializer):
    make = key_field("Make name")
    description = description_field()


class MakeReadSerializer(MasterReadSerializer):
    class Meta:
        model = Make
        fields = ["id", "make", "description"] + MasterReadSerializer.AUDIT_FIELDS


class PharmacopeialWriteSerializer(MasterWriteSerializer):
    pharmacopeial = key_field("Pharmacopeial name")
    description = description_field()


class PharmacopeialReadSerializer(MasterReadSerializer):
    class Meta:
        model = Pharmacopeial
        fields = ["id", "pharmacopeial", "description"] + MasterReadSerializer.AUDIT_FIELDS


class TestTypeWriteSerializer(MasterWriteSerializer):
    testType = key_field("Test type", "test_type")
    description = description_field()


class TestTypeReadSerializer(MasterReadSerializer):
    testType = serializers.CharField(source="test_type", read_only=True)

    class Meta:
        model = TestType
        fields = ["id", "testType", "description"] + MasterReadSerializer.AUDIT_FIELDS


# --- Mobile phase ----------------------------------------------------------

class MobilePhaseWriteSerializer(MasterWriteSerializer):
    mobilePhaseId = serializers.CharField(source="mobile_phase_id", required=False, allow_blank=True, max_length=50)
    mobilePhaseCode = key_field("Mobile Phase Code", "mobile_phase_code", max_length=20)
    isSolvent = serializers.BooleanField(source="is_solvent", required=False, default=False)
    isBuffer = serializers.BooleanField(source="is_buffer", required=False, default=False)
    solventName = serializers.CharField(
        source="solvent_name", required=False, allow_blank=True, allow_null=True, default="", max_length=100,
    )
    bufferName = serializers.CharField(
        source="buffer_name", required=False, allow_blank=True, allow_null=True, default="", max_length=100,
    )
    pHValue = serializers.FloatField(
        source="ph_value", required=False, allow_null=True, default=None, min_value=0, max_value=14,
        error_messages={"min_value": "pH Value cannot be negative", "max_value": "pH Value cannot exceed 14"},
    )
    dilutionFactor = serializers.FloatField(
        source="dilution_factor", required=False, allow_null=True, default=None, min_value=0,
        error_messages={"min_value": "Dilution Factor cannot be negative"},
    )
    chemicals = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)
    description = description_field()

    def validate(self, attrs):
        scope_filter = self.scope.as_filter()
        errors: list[str] = []

        attrs["solvent_name"] = (attrs.get("solvent_name") or "").strip()
        attrs["buffer_name"] = (attrs.get("buffer_name") or "").strip()

        if attrs.get("is_solvent"):
            name = attrs["solvent_name"]
            if not name:
                errors.append("Solvent Name is required when isSolvent is true")
            elif not Chemical.objects.filter(chemical_name=name, **scope_filter).exists():
                errors.append("Solvent Name must reference a valid chemical in Chemical Master")
        else:
            attrs["solvent_name"] = ""

        if attrs.get("is_buffer"):
            name = attrs["buffer_name"]
            if not name:
                errors.append("Buffer Name is required when isBuffer is true")
            elif not Chemical.objects.filter(chemical_name=name, **scope_filter).exists():
                errors.append("Buffer Name must reference a valid chemical in Chemical Master")
            if attrs.get("ph_value") is None:
                errors.append("pH Value is required when isBuffer is true")
        else:
            attrs["buffer_name"] = ""
            attrs["ph_value"] = None

        chemical_ids = {str(c) for c in attrs.get("chemicals") or []}
        if chemical_ids:
            found = Chemical.objects.filter(id__in=chemical_ids, **scope_filter).count()
            if found != len(chemical_ids):
                errors.append("Invalid chemical ID in chemicals array")
        attrs["chemicals"] = sorted(chemical_ids)

        if errors:
            raise serializers.ValidationError(errors)

        if not attrs.get("mobile_phase_id") and self.instance is not None:
            attrs["mobile_phase_id"] = self.instance.mobile_phase_id
        if not attrs.get("mobile_phase_id"):
            attrs["mobile_phase_id"] = f"MP-{uuid.uuid4().hex[:8].upper()}"
        return attrs


class MobilePhaseReadSerializer(MasterReadSerializer):
    mobilePhaseId = serializers.CharField(source="mobile_phase_id", read_only=True)
    mobilePhaseCode = serializers.CharField(source="mobile_phase_code", read_only=True)
    isSolvent = serializers.BooleanField(source="is_solvent", read_only=True)
    isBuffer = serializers.BooleanField(source="is_buffer", read_only=True)
    solventName = serializers.CharField(source="solvent_name", read_only=True)
    bufferName = serializers.CharField(source="buffer_name", read_only=True)
    pHValue = serializers.FloatField(source="ph_value", read_only=True)
    dilutionFactor = serializers.FloatField(source="dilution_factor", read_only=True)

    class Meta:
        model = MobilePhase
        fields = [
            "id",
            "mobilePhaseId",
            "mobilePhaseCode",
            "isSolvent",
            "isBuffer",
            "solventName",
            "bufferName",
            "chemicals",
            "pHValue",
            "dilutionFactor",
            "description",
        ] + MasterReadSerializer.AUDIT_FIELDS


# --- HPLC / UPLC -----------------------------------------------------------

class HplcWriteSerializer(MasterWriteSerializer):
    internalCode = key_field("Internal code", "internal_code", max_length=50)
    type = serializers.ChoiceField(
        choices=InstrumentType.choices,
        error_messages={
            "required": "HPLC/UPLC type is required",
            "invalid_choice": "Type must be HPLC or UPLC",
        },
    )
    detector = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
        error_messages={
            "required": "At least one detector is required",
            "empty": "At least one detector is required",
        },
    )
    isActive = serializers.BooleanField(source="is_active", required=False, default=True)
    description = description_field()

    def validate_detector(self, value):
        ids = {str(v) for v in value}
        found = DetectorType.objects.filter(id__in=ids, **self.scope.as_filter()).count()
        if found != len(ids):
            raise serializers.ValidationError("One or more detector types not found")
        return sorted(ids)


class HplcReadSerializer(MasterReadSerializer):
    internalCode = serializers.CharField(source="internal_code", read_only=True)
    isActive = serializers.BooleanField(source="is_active", read_only=True)

    class Meta:
        model = Hplc
        fields = ["id", "internalCode", "type", "detector", "isActive", "description"] + MasterReadSerializer.AUDIT_FIELDS
