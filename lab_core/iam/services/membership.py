# backend/lab_core/iam/services/membership.py
from __future__ import annotations

from lab_core.iam.models import LocationGrant

COMPANIES_CLAIM = "companies"


def list_user_companies(user_id: int) -> list[dict]:
    """
    Return the session grant list for a user:
      [{companyId, name, locations: [{locationId, name}]}]

    Canonical grant graph:
      auth_user -> Employee -> LocationGrant -> Location (+ Company)
    """
    qs = (
        LocationGrant.objects.select_related("company", "location")
        .filter(employee__user_id=user_id)
        .order_by("company__company_id", "location__name")
    )

    by_company: dict[str, dict] = {}
    for g in qs:
        c = g.company
        entry = by_company.setdefault(
            c.company_id,
            {"companyId": c.company_id, "name": c.name, "locations": []},
        )
        entry["locations"].append({"locationId": g.location.location_id, "name": g.location.name})
    return list(by_company.values())


def session_companies(request) -> list[dict]:
    """
    Grants attached to the current session.

    Tokens issued at login carry the grant list as a claim, so it stays fixed for
    the token's lifetime. Requests authenticated some other way (admin session,
    forced auth) fall back to the database.
    """
    token = getattr(request, "auth", None)
    if token is not None and hasattr(token, "get"):
        claim = token.get(COMPANIES_CLAIM)
        if claim is not None:
            return list(claim)

    user = getattr(request, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        return []
    return list_user_companies(user.id)


def is_user_granted(*, user_id: int, company_id: str, location_id: str) -> bool:
    """Database-side grant check (used outside the request cycle)."""
    return LocationGrant.objects.filter(
        employee__user_id=user_id,
        company__company_id=company_id,
        location__location_id=location_id,
    ).exists()
