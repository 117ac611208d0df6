import pytest


@pytest.fixture
def company_id():
    return "C1"


@pytest.fixture
def location_id():
    return "L1"


@pytest.fixture
def scope_params(company_id, location_id):
    """Query/body keys the browser client sends with every scoped request."""
    return {
        "companyId": company_id,
        "locationId": location_id,
    }
