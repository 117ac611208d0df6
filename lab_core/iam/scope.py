# backend/lab_core/iam/scope.py
from __future__ import annotations

import enum
from typing import Iterable, Mapping

from rest_framework.exceptions import PermissionDenied

from lab_core.common.api.exceptions import NoCompanyAssigned
from lab_core.common.scope import TenantScope
from lab_core.iam.services.membership import session_companies

SCOPE_DENIED_MSG = "Unauthorized company or location access"


class ScopeDecision(enum.Enum):
    ALLOWED = "allowed"
    NO_COMPANY = "no_company"
    LOCATION_DENIED = "location_denied"

    @property
    def allowed(self) -> bool:
        return self is ScopeDecision.ALLOWED


def check_scope(companies: Iterable[Mapping], company_id: str, location_id: str) -> ScopeDecision:
    """
    Pure check of a requested (company, location) against session grants.
    Both the company and one of its locations must match.
    """
    companies = list(companies or [])
    if not companies:
        return ScopeDecision.NO_COMPANY

    for company in companies:
        if company.get("companyId") != company_id:
            continue
        for loc in company.get("locations") or []:
            if loc.get("locationId") == location_id:
                return ScopeDecision.ALLOWED

    return ScopeDecision.LOCATION_DENIED


def assert_scope_granted(request, scope: TenantScope) -> None:
    """
    Raises 401 when the session holds no company at all and 403 when the
    requested scope is not granted. Never raises NotFound.
    """
    decision = check_scope(session_companies(request), scope.company_id, scope.location_id)
    if decision is ScopeDecision.NO_COMPANY:
        raise NoCompanyAssigned()
    if decision is ScopeDecision.LOCATION_DENIED:
        raise PermissionDenied(SCOPE_DENIED_MSG)
