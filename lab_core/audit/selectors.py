# backend/lab_core/audit/selectors.py
from __future__ import annotations

from typing import Any, Mapping

from django.db.models import F, OuterRef, QuerySet, Subquery
from django.db.models.functions import Coalesce
from rest_framework.exceptions import ValidationError

from lab_core.audit.filters import MasterDataAuditFilter
from lab_core.audit.models import MasterDataAuditLog
from lab_core.common.scope import TenantScope
from lab_core.iam.models import Employee


def with_username(qs: QuerySet[MasterDataAuditLog]) -> QuerySet[MasterDataAuditLog]:
    """Annotate each row with the actor's display name (falls back to the login id)."""
    name = Employee.objects.filter(user__username=OuterRef("user_id")).values("name")[:1]
    return qs.annotate(username=Coalesce(Subquery(name), F("user_id")))


def list_master_audit(
    *,
    data_type: str,
    scope: TenantScope,
    entity=None,
    params: Mapping[str, Any] | None = None,
) -> QuerySet[MasterDataAuditLog]:
    qs = MasterDataAuditLog.objects.filter(data_type=data_type, **scope.as_filter())

    if params:
        fs = MasterDataAuditFilter(data=params, queryset=qs, entity=entity)
        if not fs.is_valid():
            raise ValidationError(fs.errors)
        qs = fs.qs

    return with_username(qs).order_by("-timestamp")
