# backend/lab_core/masterdata/entities.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Type

from rest_framework.serializers import Serializer

from lab_core.masterdata import models as m
from lab_core.masterdata.api import serializers as s


@dataclass(frozen=True)
class MasterEntity:
    """
    Everything the generic CRUD + audit + broadcast pipeline needs to know
    about one master-data registry.
    """
    slug: str  # URL segment under /api/admin/
    model: Type[m.MasterRecord]
    key_param: str  # client-facing name of the natural key
    label: str  # used in "<label> already exists" / "<label> not found"
    data_type: str  # audit data_type and broadcast dataType
    write_serializer: Type[Serializer]
    read_serializer: Type[Serializer]
    search_fields: tuple[str, ...]

    @property
    def key_field(self) -> str:
        return self.model.KEY_FIELD


ENTITIES: dict[str, MasterEntity] = {
    e.slug: e
    for e in (
        MasterEntity(
            slug="api",
            model=m.Api,
            key_param="api",
            label="API",
            data_type="apis",
            write_serializer=s.ApiWriteSerializer,
            read_serializer=s.ApiReadSerializer,
            search_fields=("api", "desc"),
        ),
        MasterEntity(
            slug="chemical",
            model=m.Chemical,
            key_param="chemicalName",
            label="Chemical",
            data_type="chemicals",
            write_serializer=s.ChemicalWriteSerializer,
            read_serializer=s.ChemicalReadSerializer,
            search_fields=("chemicalName", "desc"),
        ),
        MasterEntity(
            slug="column",
            model=m.Column,
            key_param="columnCode",
            label="Column",
            data_type="columns",
            write_serializer=s.ColumnWriteSerializer,
            read_serializer=s.ColumnReadSerializer,
            search_fields=("columnCode",),
        ),
        MasterEntity(
            slug="detector-type",
            model=m.DetectorType,
            key_param="detectorType",
            label="Detector type",
            data_type="detectorTypes",
            write_serializer=s.DetectorTypeWriteSerializer,
            read_serializer=s.DetectorTypeReadSerializer,
            search_fields=("detectorType", "description"),
        ),
        MasterEntity(
            slug="department",
            model=m.Department,
            key_param="department",
            label="Department",
            data_type="departments",
            write_serializer=s.DepartmentWriteSerializer,
            read_serializer=s.DepartmentReadSerializer,
            search_fields=("department", "description"),
        ),
        MasterEntity(
            slug="make",
            model=m.Make,
            key_param="make",
            label="Make",
            data_type="makes",
            write_serializer=s.MakeWriteSerializer,
            read_serializer=s.MakeReadSerializer,
            search_fields=("make", "description"),
        ),
        MasterEntity(
            slug="pharmacopeial",
            model=m.Pharmacopeial,
            key_param="pharmacopeial",
            label="Pharmacopeial",
            data_type="pharmacopeials",
            write_serializer=s.PharmacopeialWriteSerializer,
            read_serializer=s.PharmacopeialReadSerializer,
            search_fields=("pharmacopeial", "description"),
        ),
        MasterEntity(
            slug="test-type",
            model=m.TestType,
            key_param="testType",
            label="Test type",
            data_type="testTypes",
            write_serializer=s.TestTypeWriteSerializer,
            read_serializer=s.TestTypeReadSerializer,
            search_fields=("testType", "description"),
        ),
        MasterEntity(
            slug="mobile-phase",
            model=m.MobilePhase,
            key_param="mobilePhaseCode",
            label="Mobile Phase",
            data_type="mobilePhases",
            write_serializer=s.MobilePhaseWriteSerializer,
            read_serializer=s.MobilePhaseReadSerializer,
            search_fields=("mobilePhaseCode", "solventName", "bufferName", "description"),
        ),
        MasterEntity(
            slug="hplc",
            model=m.Hplc,
            key_param="internalCode",
            label="HPLC",
            data_type="hplcs",
            write_serializer=s.HplcWriteSerializer,
            read_serializer=s.HplcReadSerializer,
            search_fields=("internalCode", "type", "description"),
        ),
    )
}


def get_entity(slug: str) -> MasterEntity:
    return ENTITIES[slug]
