# backend/lab_core/common/scope.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from rest_framework.exceptions import ValidationError

MISSING_SCOPE_MSG = "Company ID and Location ID are required"
BODY_NOT_OBJECT_MSG = "Request body must be a JSON object"

# Query/body keys used by the browser client
PARAM_COMPANY = "companyId"
PARAM_LOCATION = "locationId"


@dataclass(frozen=True)
class TenantScope:
    company_id: str
    location_id: str

    def as_filter(self) -> dict[str, str]:
        return {"company_id": self.company_id, "location_id": self.location_id}

    def as_payload(self) -> dict[str, str]:
        return {PARAM_COMPANY: self.company_id, PARAM_LOCATION: self.location_id}


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def resolve_scope(params: Mapping[str, Any]) -> Optional[TenantScope]:
    """
    Returns TenantScope if BOTH keys are present and non-blank, otherwise None.
    Raises nothing (pure resolver).
    """
    company_id = _clean(params.get(PARAM_COMPANY))
    location_id = _clean(params.get(PARAM_LOCATION))
    if not company_id or not location_id:
        return None
    return TenantScope(company_id=company_id, location_id=location_id)


def require_mapping(data: Any) -> Mapping[str, Any]:
    """JSON bodies may be any value; handlers that read keys need an object."""
    if not isinstance(data, Mapping):
        raise ValidationError(BODY_NOT_OBJECT_MSG)
    return data


def require_scope_params(params: Any) -> TenantScope:
    scope = resolve_scope(require_mapping(params))
    if scope is None:
        raise ValidationError(MISSING_SCOPE_MSG)
    return scope
