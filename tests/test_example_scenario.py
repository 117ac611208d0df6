# tests/test_example_scenario.py
"""
End-to-end walk through one registry: create, duplicate, audit trail.
"""
import pytest
from rest_framework.test import APIClient

from lab_core.conftest import make_employee
from lab_core.tenants.models import Company, Location

pytestmark = pytest.mark.django_db


@pytest.fixture
def admin_client(company_id, location_id):
    company = Company.objects.create(company_id=company_id, name="Acme Labs")
    location = Location.objects.create(company=company, location_id=location_id, name="Main Lab")
    user = make_employee(username="labadmin", company=company, location=location)

    client = APIClient()
    client.force_authenticate(user=user)
    return client


def test_duplicate_api_is_rejected_and_audited_once(admin_client, scope_params):
    first = admin_client.post(
        "/api/admin/api", {**scope_params, "api": "  HPLC-GRADE WATER "}, format="json"
    )
    assert first.status_code == 201
    assert first.json()["data"]["api"] == "HPLC-GRADE WATER"

    second = admin_client.post(
        "/api/admin/api", {**scope_params, "api": "HPLC-GRADE WATER"}, format="json"
    )
    assert second.status_code == 409
    assert second.json()["error"] == "API already exists"
    assert second.json()["code"] == "conflict"

    listing = admin_client.get("/api/admin/api", scope_params).json()["data"]
    assert [row["api"] for row in listing] == ["HPLC-GRADE WATER"]

    trail = admin_client.get("/api/admin/api/audit", scope_params).json()["data"]
    assert len(trail) == 1
    assert trail[0]["action"] == "CREATE"
    assert trail[0]["userId"] == "labadmin"
    assert trail[0]["username"] == "Labadmin"
    assert trail[0]["data"]["api"] == "HPLC-GRADE WATER"
    assert trail[0]["previousData"] is None


def test_same_key_in_another_location_is_allowed(admin_client, scope_params):
    company = Company.objects.get(company_id=scope_params["companyId"])
    annex = Location.objects.create(company=company, location_id="L9", name="Annex")
    user = make_employee(username="annexadmin", company=company, location=annex)
    annex_client = APIClient()
    annex_client.force_authenticate(user=user)

    assert admin_client.post("/api/admin/api", {**scope_params, "api": "Lactose"}, format="json").status_code == 201
    res = annex_client.post(
        "/api/admin/api", {**scope_params, "locationId": "L9", "api": "Lactose"}, format="json"
    )
    assert res.status_code == 201
