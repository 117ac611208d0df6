# backend/lab_core/audit/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.views import APIView

from lab_core.audit.api.serializers import MasterDataAuditLogSerializer
from lab_core.audit.selectors import list_master_audit
from lab_core.common.api.responses import ok
from lab_core.common.permissions import AuditPermission
from lab_core.common.scope import require_scope_params
from lab_core.iam.scope import assert_scope_granted
from lab_core.masterdata.entities import get_entity


class MasterDataAuditView(APIView):
    """
    Audit trail of one registry (scoped), newest first.
    """
    permission_classes = [AuditPermission]
    entity_slug: str = ""

    @extend_schema(
        tags=["Audit"],
        responses={200: MasterDataAuditLogSerializer(many=True)},
        parameters=[
            OpenApiParameter("companyId", OpenApiTypes.STR, OpenApiParameter.QUERY, required=True),
            OpenApiParameter("locationId", OpenApiTypes.STR, OpenApiParameter.QUERY, required=True),
            OpenApiParameter(
                "action", OpenApiTypes.STR, OpenApiParameter.QUERY, required=False, enum=["CREATE", "UPDATE", "DELETE"],
            ),
            OpenApiParameter("startDate", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False),
            OpenApiParameter("endDate", OpenApiTypes.DATETIME, OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                "searchTerm",
                OpenApiTypes.STR,
                OpenApiParameter.QUERY,
                required=False,
                description="Case-insensitive substring over the registry's text fields.",
            ),
        ],
    )
    def get(self, request, *args, **kwargs):
        entity = get_entity(self.entity_slug)

        scope = require_scope_params(request.query_params)
        assert_scope_granted(request, scope)

        qs = list_master_audit(
            data_type=entity.data_type,
            scope=scope,
            entity=entity,
            params=request.query_params,
        )
        return ok(MasterDataAuditLogSerializer(qs, many=True).data)
