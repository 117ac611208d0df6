# backend/lab_core/conftest.py
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from lab_core.common.scope import TenantScope
from lab_core.iam.models import Employee, EmployeeRole, LocationGrant
from lab_core.realtime.broadcaster import ChangeBroadcaster
from lab_core.realtime.connections import ConnectionRegistry
from lab_core.tenants.models import Company, Location


def make_employee(*, username, company=None, location=None, role=EmployeeRole.ADMIN, password="testpass"):
    """
    Create auth user + Employee, optionally granted one (company, location).
    Mirrors the grant graph:
      auth_user -> Employee -> LocationGrant -> Location (+ Company)
    """
    User = get_user_model()
    user = User.objects.create_user(username=username, password=password, is_active=True)
    employee = Employee.objects.create(
        user=user,
        employee_id=f"EMP-{username.upper()}",
        name=username.title(),
        role=role,
    )
    if location is not None:
        LocationGrant.objects.create(employee=employee, company=company, location=location)
        company.members.add(user)
    return user


@pytest.fixture
def company(db):
    return Company.objects.create(company_id="C1", name="Acme Labs")


@pytest.fixture
def location(db, company):
    return Location.objects.create(company=company, location_id="L1", name="Main Lab")


@pytest.fixture
def other_company(db):
    return Company.objects.create(company_id="C2", name="Other Labs")


@pytest.fixture
def other_location(db, other_company):
    return Location.objects.create(company=other_company, location_id="L2", name="Other Lab")


@pytest.fixture
def scope(company, location):
    return TenantScope(company_id=company.company_id, location_id=location.location_id)


@pytest.fixture
def other_scope(other_company, other_location):
    return TenantScope(company_id=other_company.company_id, location_id=other_location.location_id)


@pytest.fixture
def user(db, company, location):
    """Admin employee granted C1/L1."""
    return make_employee(username="testuser", company=company, location=location)


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def registry():
    r = ConnectionRegistry(queue_size=5)
    yield r
    r.close_all()


@pytest.fixture
def broadcaster(registry):
    return ChangeBroadcaster(registry)
