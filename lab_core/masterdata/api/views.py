# backend/lab_core/masterdata/api/views.py
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.views import APIView

from lab_core.common.api.responses import ok
from lab_core.common.permissions import MasterDataPermission
from lab_core.common.scope import TenantScope, require_mapping, require_scope_params, resolve_scope
from lab_core.iam.scope import assert_scope_granted
from lab_core.masterdata.api.serializers import (
    ColumnDetailReadSerializer,
    ColumnReadSerializer,
    ObsoleteColumnRequestSerializer,
)
from lab_core.masterdata.entities import MasterEntity, get_entity
from lab_core.masterdata.selectors import bulk_master_data
from lab_core.masterdata.services import MasterDataService, set_descriptions_obsolete
from lab_core.realtime.apps import get_broadcaster

SCOPE_PARAMS = [
    OpenApiParameter("companyId", OpenApiTypes.STR, OpenApiParameter.QUERY, required=True),
    OpenApiParameter("locationId", OpenApiTypes.STR, OpenApiParameter.QUERY, required=True),
]


def _parse_id(value: Any) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


class MasterDataView(APIView):
    """
    Generic scoped CRUD endpoint; one route per registry:
      GET    ?companyId=&locationId=      -> list
      POST   {..fields, companyId, locationId}
      PUT    {id, ..fields, companyId, locationId}
      DELETE ?id=[&companyId=&locationId=]
    """
    permission_classes = [MasterDataPermission]

    entity_slug: str = ""
    # injected in tests; default to the process-wide instances
    broadcaster = None
    recorder = None

    @property
    def entity(self) -> MasterEntity:
        return get_entity(self.entity_slug)

    def get_service(self) -> MasterDataService:
        return MasterDataService(
            self.entity,
            recorder=self.recorder,
            broadcaster=self.broadcaster if self.broadcaster is not None else get_broadcaster(),
        )

    def get_write_serializer(self, scope: TenantScope, instance=None):
        serializer = self.entity.write_serializer(
            instance,
            data=self.request.data,
            context={"scope": scope, "request": self.request},
        )
        serializer.is_valid(raise_exception=True)
        return serializer

    def not_found(self) -> NotFound:
        return NotFound(f"{self.entity.label} not found")

    def id_required(self) -> ValidationError:
        return ValidationError(f"{self.entity.label} ID is required")

    @extend_schema(tags=["Master data"], parameters=SCOPE_PARAMS)
    def get(self, request, *args, **kwargs):
        scope = require_scope_params(request.query_params)
        assert_scope_granted(request, scope)

        qs = self.get_service().list(scope)
        return ok(self.entity.read_serializer(qs, many=True).data)

    @extend_schema(tags=["Master data"])
    def post(self, request, *args, **kwargs):
        scope = require_scope_params(request.data)
        assert_scope_granted(request, scope)
        serializer = self.get_write_serializer(scope)

        obj = self.get_service().create(
            scope=scope,
            actor_id=request.user.username,
            fields=serializer.validated_data,
        )
        return ok(self.entity.read_serializer(obj).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Master data"])
    def put(self, request, *args, **kwargs):
        raw_id = require_mapping(request.data).get("id")
        if not raw_id:
            raise self.id_required()

        scope = require_scope_params(request.data)
        assert_scope_granted(request, scope)

        service = self.get_service()
        entity_id = _parse_id(raw_id)
        instance = service.get(entity_id=entity_id, scope=scope) if entity_id else None
        if instance is None:
            raise self.not_found()

        serializer = self.get_write_serializer(scope, instance=instance)
        obj = service.update(
            instance=instance,
            actor_id=request.user.username,
            fields=serializer.validated_data,
        )
        return ok(self.entity.read_serializer(obj).data)

    @extend_schema(
        tags=["Master data"],
        parameters=[OpenApiParameter("id", OpenApiTypes.UUID, OpenApiParameter.QUERY, required=True)],
    )
    def delete(self, request, *args, **kwargs):
        raw_id = request.query_params.get("id")
        if not raw_id:
            raise self.id_required()

        # scope is optional here; when given it narrows the lookup
        scope = resolve_scope(request.query_params)

        service = self.get_service()
        entity_id = _parse_id(raw_id)
        instance = service.get(entity_id=entity_id, scope=scope) if entity_id else None
        if instance is None:
            raise self.not_found()

        assert_scope_granted(request, TenantScope(instance.company_id, instance.location_id))

        snapshot = service.delete(instance=instance, actor_id=request.user.username)
        return ok(snapshot, message=f"{self.entity.label} deleted successfully")


class BulkMasterDataView(APIView):
    """Every registry of one scope at once, plus per-registry counts."""
    permission_classes = [MasterDataPermission]

    @extend_schema(tags=["Master data"], parameters=SCOPE_PARAMS)
    def get(self, request):
        scope = require_scope_params(request.query_params)
        assert_scope_granted(request, scope)

        payload = bulk_master_data(scope=scope)
        return ok(
            payload["data"],
            meta={
                "companyId": scope.company_id,
                "locationId": scope.location_id,
                "counts": payload["counts"],
                "timestamp": timezone.now().isoformat(),
            },
        )


class ColumnDetailView(MasterDataView):
    """
    One column addressed by id:
      GET    /admin/column/<id>?companyId=&locationId=  -> column + status
      DELETE /admin/column/<id>?companyId=&locationId=
    """
    entity_slug = "column"
    http_method_names = ["get", "delete", "options"]

    def get_column(self, request, column_id: UUID):
        scope = require_scope_params(request.query_params)
        assert_scope_granted(request, scope)

        service = self.get_service()
        instance = service.get(entity_id=column_id, scope=scope)
        if instance is None:
            raise self.not_found()
        return service, instance

    @extend_schema(tags=["Master data"], parameters=SCOPE_PARAMS, responses={200: ColumnDetailReadSerializer})
    def get(self, request, column_id: UUID, *args, **kwargs):
        _, instance = self.get_column(request, column_id)
        data = ColumnDetailReadSerializer(instance).data
        return ok(data, message=f"Column {instance.column_code} retrieved successfully")

    @extend_schema(tags=["Master data"], parameters=SCOPE_PARAMS)
    def delete(self, request, column_id: UUID, *args, **kwargs):
        service, instance = self.get_column(request, column_id)
        snapshot = service.delete(instance=instance, actor_id=request.user.username)
        return ok(snapshot, message="Column deleted successfully")


def _obsolete_only(column_data: dict) -> dict:
    return {**column_data, "descriptions": [d for d in column_data["descriptions"] if d.get("isObsolete")]}


class ObsoleteColumnView(MasterDataView):
    """
    Obsolete column descriptions of a scope:
      GET  ?companyId=&locationId=                       -> columns holding obsolete descriptions
      POST {id, descriptionIds?, companyId, locationId}  -> mark descriptions obsolete
    """
    entity_slug = "column"
    http_method_names = ["get", "post", "options"]

    @extend_schema(tags=["Master data"], parameters=SCOPE_PARAMS)
    def get(self, request, *args, **kwargs):
        scope = require_scope_params(request.query_params)
        assert_scope_granted(request, scope)

        columns = ColumnReadSerializer(self.get_service().list(scope), many=True).data
        data = [_obsolete_only(c) for c in columns if any(d.get("isObsolete") for d in c["descriptions"])]
        return ok(data)

    @extend_schema(tags=["Master data"], request=ObsoleteColumnRequestSerializer)
    def post(self, request, *args, **kwargs):
        scope = require_scope_params(request.data)
        assert_scope_granted(request, scope)

        serializer = ObsoleteColumnRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = self.get_service()
        instance = service.get(entity_id=serializer.validated_data["id"], scope=scope)
        if instance is None:
            raise self.not_found()

        obj = set_descriptions_obsolete(
            service,
            instance=instance,
            actor_id=request.user.username,
            obsolete=True,
            description_ids=serializer.validated_data["descriptionIds"],
        )
        return ok(ColumnDetailReadSerializer(obj).data, message="Column moved to obsolete successfully")


class ObsoleteColumnDetailView(MasterDataView):
    """
    DELETE /admin/obsolete-column/<id>?companyId=&locationId=[&descriptionId=]
    restores the column's obsolete descriptions (or just the one named).
    """
    entity_slug = "column"
    http_method_names = ["delete", "options"]

    @extend_schema(
        tags=["Master data"],
        parameters=SCOPE_PARAMS + [
            OpenApiParameter("descriptionId", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False),
        ],
    )
    def delete(self, request, column_id: UUID, *args, **kwargs):
        scope = require_scope_params(request.query_params)
        assert_scope_granted(request, scope)

        service = self.get_service()
        instance = service.get(entity_id=column_id, scope=scope)
        if instance is None or not any(d.get("isObsolete") for d in instance.descriptions or []):
            raise NotFound("Obsolete column not found")

        description_id = (request.query_params.get("descriptionId") or "").strip()
        obj = set_descriptions_obsolete(
            service,
            instance=instance,
            actor_id=request.user.username,
            obsolete=False,
            description_ids=[description_id] if description_id else None,
        )
        return ok(ColumnDetailReadSerializer(obj).data, message="Obsolete column restored successfully")
