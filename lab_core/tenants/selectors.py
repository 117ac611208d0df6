# backend/lab_core/tenants/selectors.py
from __future__ import annotations

from typing import Optional

from lab_core.tenants.models import Location


def get_location_or_none(*, company_id: str, location_id: str) -> Optional[Location]:
    return (
        Location.objects.select_related("company")
        .filter(company__company_id=(company_id or "").strip().upper(), location_id=location_id)
        .first()
    )
