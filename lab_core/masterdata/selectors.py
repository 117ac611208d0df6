# backend/lab_core/masterdata/selectors.py
from __future__ import annotations

from typing import Any, Dict

from django.db.models import QuerySet

from lab_core.common.scope import TenantScope
from lab_core.masterdata.entities import ENTITIES, MasterEntity


def list_master_records(*, entity: MasterEntity, scope: TenantScope) -> QuerySet:
    return entity.model.objects.filter(**scope.as_filter()).order_by(entity.key_field)


def bulk_master_data(*, scope: TenantScope) -> Dict[str, Any]:
    """
    Every registry of one scope in a single payload, keyed by dataType.
    Subscribers use it to resync after reconnecting.
    """
    data: Dict[str, Any] = {}
    counts: Dict[str, int] = {}
    for entity in ENTITIES.values():
        rows = entity.read_serializer(list_master_records(entity=entity, scope=scope), many=True).data
        data[entity.data_type] = rows
        counts[entity.data_type] = len(rows)
    return {"data": data, "counts": counts}
