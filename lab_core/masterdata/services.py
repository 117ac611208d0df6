# backend/lab_core/masterdata/services.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from rest_framework.exceptions import ValidationError

from lab_core.audit.models import AuditAction
from lab_core.audit.services import ChangeRecorder
from lab_core.common.api.exceptions import ConflictError
from lab_core.common.scope import TenantScope
from lab_core.masterdata.entities import MasterEntity
from lab_core.masterdata.models import MasterRecord
from lab_core.masterdata.selectors import list_master_records

logger = logging.getLogger(__name__)


class MasterDataService:
    """
    All master-data mutations live here (write-model boundary).

    One instance per entity kind. After a successful mutation the change is
    recorded and then broadcast; both are best-effort and never fail the
    mutation itself.
    """

    def __init__(self, entity: MasterEntity, *, recorder: ChangeRecorder | None = None, broadcaster=None):
        self.entity = entity
        self.recorder = recorder or ChangeRecorder()
        self.broadcaster = broadcaster

    @property
    def model(self):
        return self.entity.model

    def conflict(self) -> ConflictError:
        return ConflictError(f"{self.entity.label} already exists")

    def snapshot(self, instance: MasterRecord) -> Dict[str, Any]:
        return dict(self.entity.read_serializer(instance).data)

    def key_taken(self, scope: TenantScope, value: str, *, exclude_id=None) -> bool:
        qs = self.model.objects.filter(**{self.entity.key_field: value}, **scope.as_filter())
        if exclude_id is not None:
            qs = qs.exclude(id=exclude_id)
        return qs.exists()

    # --- reads -----------------------------------------------------------

    def list(self, scope: TenantScope) -> QuerySet:
        return list_master_records(entity=self.entity, scope=scope)

    def get(self, *, entity_id, scope: Optional[TenantScope] = None) -> Optional[MasterRecord]:
        qs = self.model.objects.filter(id=entity_id)
        if scope is not None:
            qs = qs.filter(**scope.as_filter())
        return qs.first()

    # --- writes ----------------------------------------------------------

    def create(self, *, scope: TenantScope, actor_id: str, fields: Dict[str, Any]) -> MasterRecord:
        key = fields[self.entity.key_field]
        if self.key_taken(scope, key):
            raise self.conflict()

        try:
            with transaction.atomic():
                obj = self.model.objects.create(
                    **fields,
                    **scope.as_filter(),
                    created_by=actor_id,
                    updated_by=actor_id,
                )
        except IntegrityError:
            # lost the race to a concurrent create; the unique constraint decides
            raise self.conflict()

        after = self.snapshot(obj)
        self._after_commit(AuditAction.CREATE, actor_id, scope, before=None, after=after)
        return obj

    def update(
        self,
        *,
        instance: MasterRecord,
        actor_id: str,
        fields: Dict[str, Any],
    ) -> MasterRecord:
        scope = TenantScope(instance.company_id, instance.location_id)

        key = fields.get(self.entity.key_field, instance.key_value)
        if self.key_taken(scope, key, exclude_id=instance.id):
            raise self.conflict()

        before = self.snapshot(instance)

        try:
            with transaction.atomic():
                obj = self.model.objects.select_for_update().get(id=instance.id)
                for name, value in fields.items():
                    setattr(obj, name, value)
                obj.updated_by = actor_id
                obj.save()
        except IntegrityError:
            raise self.conflict()

        after = self.snapshot(obj)
        self._after_commit(AuditAction.UPDATE, actor_id, scope, before=before, after=after)
        return obj

    def delete(self, *, instance: MasterRecord, actor_id: str) -> Dict[str, Any]:
        scope = TenantScope(instance.company_id, instance.location_id)
        before = self.snapshot(instance)

        with transaction.atomic():
            instance.delete()

        self._after_commit(AuditAction.DELETE, actor_id, scope, before=before, after=None)
        return before

    # --- side effects ----------------------------------------------------

    def _after_commit(self, action: str, actor_id: str, scope: TenantScope, *, before, after) -> None:
        self.recorder.record(
            action=action,
            actor_id=actor_id,
            data_type=self.entity.data_type,
            scope=scope,
            before=before,
            after=after,
        )

        if self.broadcaster is None:
            return
        try:
            self.broadcaster.broadcast(
                data_type=self.entity.data_type,
                action=action,
                record=after if after is not None else before,
                scope=scope,
            )
        except Exception:
            logger.exception("Broadcast of %s %s failed (ignored).", self.entity.data_type, action)


def set_descriptions_obsolete(
    service: MasterDataService,
    *,
    instance: MasterRecord,
    actor_id: str,
    obsolete: bool,
    description_ids: Optional[Iterable[str]] = None,
) -> MasterRecord:
    """
    Flips `isObsolete` on a column's descriptions (all of them when no ids are
    given). Goes through the regular update so the change is audited and broadcast.
    """
    descriptions = [dict(d) for d in instance.descriptions or []]
    wanted = set(description_ids) if description_ids else None
    if wanted is not None:
        missing = wanted - {d.get("descriptionId") for d in descriptions}
        if missing:
            raise ValidationError(f"Description not found: {', '.join(sorted(missing))}")

    for desc in descriptions:
        if wanted is None or desc.get("descriptionId") in wanted:
            desc["isObsolete"] = obsolete

    logger.info(
        "Column %s: %d description(s) marked %s by %s",
        instance.key_value,
        len(wanted) if wanted is not None else len(descriptions),
        "obsolete" if obsolete else "active",
        actor_id,
    )
    return service.update(instance=instance, actor_id=actor_id, fields={"descriptions": descriptions})
