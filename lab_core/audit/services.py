# backend/lab_core/audit/services.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.db import transaction

from lab_core.audit.models import AuditAction, EmployeeAuditLog, MasterDataAuditLog
from lab_core.common.scope import TenantScope

logger = logging.getLogger(__name__)


class ChangeRecorder:
    """
    Central audit writer for master-data mutations.

    Writes are best-effort: a failed insert is logged and swallowed so the
    primary mutation still succeeds. The insert runs in its own savepoint so a
    failure never poisons an enclosing transaction.
    """

    def record(
        self,
        *,
        action: str,
        actor_id: str,
        data_type: str,
        scope: TenantScope,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
    ) -> Optional[MasterDataAuditLog]:
        if action == AuditAction.CREATE:
            data, previous = after, None
        elif action == AuditAction.UPDATE:
            data, previous = after, before
        elif action == AuditAction.DELETE:
            # deleted snapshot doubles as the terminal data state
            data, previous = before, before
        else:
            raise ValueError(f"Unknown audit action: {action}")

        try:
            with transaction.atomic():
                return MasterDataAuditLog.objects.create(
                    data_type=data_type,
                    user_id=str(actor_id),
                    action=action,
                    data=data,
                    previous_data=previous,
                    company_id=scope.company_id,
                    location_id=scope.location_id,
                )
        except Exception:
            logger.exception(
                "Audit write for %s %s in %s/%s failed (ignored).",
                data_type,
                action,
                scope.company_id,
                scope.location_id,
            )
            return None


class EmployeeAuditService:
    @staticmethod
    def log(
        *,
        action: str,
        employee_id: str,
        user_id: str,
        performed_by: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> EmployeeAuditLog:
        return EmployeeAuditLog.objects.create(
            action=action,
            employee_id=employee_id,
            user_id=user_id,
            performed_by=performed_by,
            details=details or {},
        )
