import pytest
from rest_framework.test import APIClient

from lab_core.conftest import make_employee
from lab_core.tests.helpers import error_of, scoped

pytestmark = pytest.mark.django_db


def test_unauthenticated_is_401(scope):
    res = APIClient().get("/api/admin/api", scope.as_payload())
    assert res.status_code == 401


def test_missing_scope_params_is_400(api_client):
    res = api_client.get("/api/admin/make")
    assert res.status_code == 400
    assert error_of(res) == "Company ID and Location ID are required"


def test_session_without_company_is_401(db, scope):
    lonely = make_employee(username="lonely")
    c = APIClient()
    c.force_authenticate(user=lonely)

    res = c.get("/api/admin/chemical", scope.as_payload())
    assert res.status_code == 401
    assert error_of(res) == "Unauthorized or no company assigned"


@pytest.mark.parametrize("slug", ["api", "detector-type", "pharmacopeial", "make", "department", "chemical"])
def test_ungranted_location_is_403_on_every_registry(api_client, other_scope, slug):
    res = api_client.get(f"/api/admin/{slug}", other_scope.as_payload())
    assert res.status_code == 403
    assert error_of(res) == "Unauthorized company or location access"


def test_write_to_ungranted_scope_is_403_not_404(api_client, other_scope):
    res = api_client.post("/api/admin/api", scoped(other_scope, api="X"), format="json")
    assert res.status_code == 403


def test_token_claim_is_used_over_database(user, other_scope):
    """Grants are fixed at login: a grant added later is not visible to an existing token."""
    from rest_framework_simplejwt.tokens import AccessToken

    from lab_core.iam.api.serializers import LabTokenObtainPairSerializer

    access = str(LabTokenObtainPairSerializer.get_token(user).access_token)

    from lab_core.iam.models import LocationGrant
    from lab_core.tenants.models import Company, Location

    LocationGrant.objects.create(
        employee=user.employee,
        company=Company.objects.get(company_id=other_scope.company_id),
        location=Location.objects.get(location_id=other_scope.location_id),
    )

    c = APIClient()
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
    assert AccessToken(access)["companies"][0]["companyId"] == "C1"

    res = c.get("/api/admin/make", other_scope.as_payload())
    assert res.status_code == 403
