# backend/lab_core/masterdata/tests/test_api.py
import uuid

import pytest

from lab_core.audit.models import MasterDataAuditLog
from lab_core.masterdata.models import Api, Chemical, Column, DetectorType, Make
from lab_core.tests.helpers import error_of, scoped

pytestmark = pytest.mark.django_db


def _post(client, slug, scope, **fields):
    return client.post(f"/api/admin/{slug}", scoped(scope, **fields), format="json")


def _put(client, slug, scope, **fields):
    return client.put(f"/api/admin/{slug}", scoped(scope, **fields), format="json")


# --- generic CRUD ------------------------------------------------------------

def test_create_trims_and_returns_201(api_client, scope):
    res = _post(api_client, "api", scope, api="  HPLC-GRADE WATER  ", desc="  solvent ")

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["data"]["api"] == "HPLC-GRADE WATER"
    assert body["data"]["desc"] == "solvent"
    assert body["data"]["createdBy"] == "testuser"
    assert body["data"]["companyId"] == "C1"


def test_validation_messages(api_client, scope):
    res = _post(api_client, "api", scope, api="   ")
    assert res.status_code == 400
    assert res.json()["validationErrors"] == ["API name is required"]

    res = _post(api_client, "api", scope, api="x" * 101)
    assert res.status_code == 400
    assert error_of(res) == "API name cannot exceed 100 characters"


def test_list_returns_scope_rows_sorted(api_client, scope, other_scope):
    for name in ("Beta", "Alpha"):
        _post(api_client, "make", scope, make=name)
    Make.objects.create(make="Elsewhere", **other_scope.as_filter())

    res = api_client.get("/api/admin/make", scope.as_payload())
    assert res.status_code == 200
    assert [m["make"] for m in res.json()["data"]] == ["Alpha", "Beta"]


def test_update_flow(api_client, scope):
    alpha = _post(api_client, "department", scope, department="QC").json()["data"]
    _post(api_client, "department", scope, department="QA")

    res = _put(api_client, "department", scope, id=alpha["id"], department="QA")
    assert res.status_code == 409
    assert error_of(res) == "Department already exists"

    res = _put(api_client, "department", scope, id=alpha["id"], department="QC Lab", daysOfUrgency=3)
    assert res.status_code == 200
    assert res.json()["data"]["department"] == "QC Lab"
    assert res.json()["data"]["daysOfUrgency"] == 3
    assert res.json()["data"]["updatedBy"] == "testuser"


def test_update_requires_id_and_existing_row(api_client, scope):
    res = _put(api_client, "department", scope, department="QC")
    assert res.status_code == 400
    assert error_of(res) == "Department ID is required"

    res = _put(api_client, "department", scope, id=str(uuid.uuid4()), department="QC")
    assert res.status_code == 404
    assert error_of(res) == "Department not found"

    res = _put(api_client, "department", scope, id="not-a-uuid", department="QC")
    assert res.status_code == 404


def test_delete_returns_snapshot_and_audits(api_client, scope):
    created = _post(api_client, "pharmacopeial", scope, pharmacopeial="USP").json()["data"]

    res = api_client.delete(f"/api/admin/pharmacopeial?id={created['id']}")
    assert res.status_code == 200
    assert res.json()["data"]["pharmacopeial"] == "USP"

    log = MasterDataAuditLog.objects.get(data_type="pharmacopeials", action="DELETE")
    assert log.previous_data["id"] == created["id"]


def test_delete_missing_is_404_without_audit(api_client, scope):
    res = api_client.delete("/api/admin/api")
    assert res.status_code == 400
    assert error_of(res) == "API ID is required"

    res = api_client.delete(f"/api/admin/api?id={uuid.uuid4()}")
    assert res.status_code == 404
    assert error_of(res) == "API not found"
    assert not MasterDataAuditLog.objects.exists()


def test_delete_in_ungranted_scope_is_403_and_keeps_row(api_client, other_scope):
    row = Api.objects.create(api="Foreign", **other_scope.as_filter())

    res = api_client.delete(f"/api/admin/api?id={row.id}")
    assert res.status_code == 403
    assert Api.objects.filter(id=row.id).exists()
    assert not MasterDataAuditLog.objects.exists()


def test_delete_with_scope_narrows_lookup(api_client, scope, other_scope):
    row = Api.objects.create(api="Foreign", **other_scope.as_filter())

    res = api_client.delete(f"/api/admin/api?id={row.id}&companyId={scope.company_id}&locationId={scope.location_id}")
    assert res.status_code == 404
    assert Api.objects.filter(id=row.id).exists()


# --- entity-specific rules ---------------------------------------------------

def test_chemical_flags_are_required(api_client, scope):
    res = _post(api_client, "chemical", scope, chemicalName="Methanol")
    assert res.status_code == 400
    assert set(res.json()["validationErrors"]) == {"isSolvent is required", "isBuffer is required"}

    res = _post(api_client, "chemical", scope, chemicalName="Methanol", isSolvent=True, isBuffer=False)
    assert res.status_code == 201
    assert res.json()["data"]["isSolvent"] is True


def test_department_urgency_bounds(api_client, scope):
    res = _post(api_client, "department", scope, department="Micro", daysOfUrgency=31)
    assert res.status_code == 400
    assert error_of(res) == "Days of urgency must be between 0 and 30"


def test_mobile_phase_references_chemicals_in_scope(api_client, scope, other_scope):
    Chemical.objects.create(chemical_name="Acetonitrile", is_solvent=True, **other_scope.as_filter())

    res = _post(api_client, "mobile-phase", scope, mobilePhaseCode="MP1", isSolvent=True, solventName="Acetonitrile")
    assert res.status_code == 400
    assert error_of(res) == "Solvent Name must reference a valid chemical in Chemical Master"

    res = _post(api_client, "mobile-phase", scope, mobilePhaseCode="MP1", isBuffer=True)
    assert res.status_code == 400
    errors = res.json()["validationErrors"]
    assert "Buffer Name is required when isBuffer is true" in errors
    assert "pH Value is required when isBuffer is true" in errors


def test_mobile_phase_clears_fields_of_unset_flags(api_client, scope):
    water = Chemical.objects.create(chemical_name="Water", is_solvent=True, **scope.as_filter())
    Chemical.objects.create(chemical_name="Phosphate", is_buffer=True, **scope.as_filter())

    res = _post(
        api_client,
        "mobile-phase",
        scope,
        mobilePhaseCode="MP-01",
        isSolvent=True,
        solventName="Water",
        isBuffer=False,
        bufferName="Phosphate",
        pHValue=7,
        dilutionFactor=2.5,
        chemicals=[str(water.id)],
    )
    assert res.status_code == 201, res.json()
    data = res.json()["data"]
    assert data["solventName"] == "Water"
    assert data["bufferName"] == ""
    assert data["pHValue"] is None
    assert data["chemicals"] == [str(water.id)]
    assert data["mobilePhaseId"].startswith("MP-")


def test_mobile_phase_code_length(api_client, scope):
    res = _post(api_client, "mobile-phase", scope, mobilePhaseCode="M" * 21)
    assert error_of(res) == "Mobile Phase Code cannot exceed 20 characters"


def test_column_descriptions(api_client, scope, other_scope):
    make = Make.objects.create(make="Agilent", **scope.as_filter())
    foreign_make = Make.objects.create(make="Waters", **other_scope.as_filter())

    good = {
        "carbonType": "C18",
        "makeId": str(make.id),
        "columnId": "COL-1",
        "installationDate": "2024-01-15",
        "innerDiameter": 4.6,
        "length": 250,
        "particleSize": 5,
        "phMin": 2,
        "phMax": 8,
    }

    res = _post(api_client, "column", scope, columnCode="C-001", descriptions=[])
    assert res.status_code == 400
    assert error_of(res) == "At least one description is required"

    res = _post(api_client, "column", scope, columnCode="C-001", descriptions=[good, {"makeId": str(make.id)}])
    assert res.status_code == 400
    errors = res.json()["validationErrors"]
    assert "Item 2: Carbon Type is required" in errors
    assert "Item 2: Installation Date is required" in errors

    res = _post(api_client, "column", scope, columnCode="C-001", descriptions=[{**good, "phMin": 9}])
    assert error_of(res) == "Item 1: pH Min cannot be greater than pH Max"

    res = _post(api_client, "column", scope, columnCode="C-001", descriptions=[{**good, "makeId": str(foreign_make.id)}])
    assert error_of(res) == "Make not found for description 1"

    res = _post(api_client, "column", scope, columnCode="C-001", descriptions=[good])
    assert res.status_code == 201, res.json()
    desc = res.json()["data"]["descriptions"][0]
    assert desc["descriptionId"]
    assert desc["installationDate"] == "2024-01-15"
    assert desc["isObsolete"] is False


def test_hplc_detectors_must_exist_in_scope(api_client, scope, other_scope):
    uv = DetectorType.objects.create(detector_type="UV", **scope.as_filter())
    foreign = DetectorType.objects.create(detector_type="RI", **other_scope.as_filter())

    res = _post(api_client, "hplc", scope, internalCode="H-1", type="HPLC", detector=[])
    assert error_of(res) == "At least one detector is required"

    res = _post(api_client, "hplc", scope, internalCode="H-1", type="GC", detector=[str(uv.id)])
    assert error_of(res) == "Type must be HPLC or UPLC"

    res = _post(api_client, "hplc", scope, internalCode="H-1", type="HPLC", detector=[str(foreign.id)])
    assert error_of(res) == "One or more detector types not found"

    res = _post(api_client, "hplc", scope, internalCode="H-1", type="UPLC", detector=[str(uv.id)])
    assert res.status_code == 201
    assert res.json()["data"]["detector"] == [str(uv.id)]
    assert res.json()["data"]["isActive"] is True

    res = _post(api_client, "hplc", scope, internalCode="H-1", type="UPLC", detector=[str(uv.id)])
    assert res.status_code == 409
    assert error_of(res) == "HPLC already exists"


# --- bulk --------------------------------------------------------------------

def test_bulk_returns_every_registry_with_counts(api_client, scope, other_scope):
    _post(api_client, "api", scope, api="Paracetamol")
    _post(api_client, "make", scope, make="Agilent")
    _post(api_client, "make", scope, make="Waters")
    Make.objects.create(make="Shimadzu", **other_scope.as_filter())

    res = api_client.get("/api/master-data/bulk", scope.as_payload())
    assert res.status_code == 200
    body = res.json()
    assert [m["make"] for m in body["data"]["makes"]] == ["Agilent", "Waters"]
    assert body["meta"]["counts"]["apis"] == 1
    assert body["meta"]["counts"]["makes"] == 2
    assert body["meta"]["counts"]["hplcs"] == 0
    assert set(body["data"]) == {
        "apis", "chemicals", "columns", "detectorTypes", "departments",
        "makes", "pharmacopeials", "testTypes", "mobilePhases", "hplcs",
    }


def test_bulk_requires_granted_scope(api_client, other_scope):
    assert api_client.get("/api/master-data/bulk", other_scope.as_payload()).status_code == 403


# --- every registry ------------------------------------------------------------

def _minimal_payload(slug, scope):
    if slug == "column":
        make = Make.objects.create(make="Agilent", **scope.as_filter())
        return {"columnCode": "C-001", "descriptions": [_description(make)]}
    if slug == "hplc":
        uv = DetectorType.objects.create(detector_type="UV", **scope.as_filter())
        return {"internalCode": "H-1", "type": "HPLC", "detector": [str(uv.id)]}
    return {
        "api": {"api": "Paracetamol", "desc": "analgesic"},
        "chemical": {"chemicalName": "Methanol", "isSolvent": True, "isBuffer": False, "desc": "solvent"},
        "detector-type": {"detectorType": "UV", "description": "ultraviolet"},
        "department": {"department": "QC", "description": "quality control"},
        "make": {"make": "Waters", "description": "vendor"},
        "pharmacopeial": {"pharmacopeial": "USP", "description": "US"},
        "test-type": {"testType": "Assay", "description": "content"},
        "mobile-phase": {"mobilePhaseCode": "MP1", "description": "blank"},
    }[slug]


@pytest.mark.parametrize(
    "slug",
    ["api", "chemical", "column", "detector-type", "department", "make", "pharmacopeial", "test-type", "mobile-phase", "hplc"],
)
def test_each_registry_accepts_a_valid_create_and_lists_it(api_client, scope, slug):
    res = _post(api_client, slug, scope, **_minimal_payload(slug, scope))
    assert res.status_code == 201, res.json()
    created = res.json()["data"]

    res = api_client.get(f"/api/admin/{slug}", scope.as_payload())
    assert res.status_code == 200
    assert created["id"] in {row["id"] for row in res.json()["data"]}


# --- request body shape --------------------------------------------------------

@pytest.mark.parametrize("method", ["post", "put"])
def test_non_object_body_is_400(api_client, method):
    res = getattr(api_client, method)("/api/admin/api", [1, 2], format="json")
    assert res.status_code == 400
    assert error_of(res) == "Request body must be a JSON object"


# --- generated ids survive updates -----------------------------------------------

def _description(make, **overrides):
    return {
        "carbonType": "C18",
        "makeId": str(make.id),
        "columnId": "COL-1",
        "installationDate": "2024-01-15",
        **overrides,
    }


def test_column_update_keeps_description_ids(api_client, scope):
    make = Make.objects.create(make="Agilent", **scope.as_filter())
    created = _post(
        api_client, "column", scope,
        columnCode="C-001",
        descriptions=[_description(make), _description(make, columnId="COL-2")],
    ).json()["data"]
    ids = {d["columnId"]: d["descriptionId"] for d in created["descriptions"]}

    # client resends the descriptions without their ids, in a different order
    res = _put(
        api_client, "column", scope,
        id=created["id"],
        columnCode="C-001",
        descriptions=[_description(make, columnId="COL-2", carbonType="C8"), _description(make)],
    )
    assert res.status_code == 200, res.json()
    updated = {d["columnId"]: d["descriptionId"] for d in res.json()["data"]["descriptions"]}
    assert updated == ids


def test_column_update_gives_new_descriptions_fresh_ids(api_client, scope):
    make = Make.objects.create(make="Agilent", **scope.as_filter())
    created = _post(api_client, "column", scope, columnCode="C-001", descriptions=[_description(make)]).json()["data"]
    first_id = created["descriptions"][0]["descriptionId"]

    res = _put(
        api_client, "column", scope,
        id=created["id"],
        columnCode="C-001",
        descriptions=[_description(make), _description(make, columnId="COL-2")],
    )
    ids = [d["descriptionId"] for d in res.json()["data"]["descriptions"]]
    assert ids[0] == first_id
    assert ids[1] and ids[1] != first_id


def test_mobile_phase_update_keeps_generated_id(api_client, scope):
    created = _post(api_client, "mobile-phase", scope, mobilePhaseCode="MP1").json()["data"]

    res = _put(api_client, "mobile-phase", scope, id=created["id"], mobilePhaseCode="MP2")
    assert res.status_code == 200, res.json()
    assert res.json()["data"]["mobilePhaseId"] == created["mobilePhaseId"]
    assert res.json()["data"]["mobilePhaseCode"] == "MP2"


# --- column detail and obsolete descriptions ---------------------------------------

@pytest.fixture
def column(api_client, scope):
    make = Make.objects.create(make="Agilent", **scope.as_filter())
    res = _post(
        api_client, "column", scope,
        columnCode="C-001",
        descriptions=[_description(make), _description(make, columnId="COL-2")],
    )
    return res.json()["data"]


def test_column_detail_reports_status(api_client, scope, column):
    res = api_client.get(f"/api/admin/column/{column['id']}", scope.as_payload())

    assert res.status_code == 200
    body = res.json()
    assert body["data"]["columnCode"] == "C-001"
    assert body["data"]["status"] == "active"
    assert body["data"]["isObsolete"] is False
    assert body["data"]["descriptionsCount"] == 2
    assert body["message"] == "Column C-001 retrieved successfully"


def test_column_detail_requires_scope_and_existing_row(api_client, scope, other_scope, column):
    res = api_client.get(f"/api/admin/column/{column['id']}")
    assert res.status_code == 400
    assert error_of(res) == "Company ID and Location ID are required"

    res = api_client.get(f"/api/admin/column/{uuid.uuid4()}", scope.as_payload())
    assert res.status_code == 404
    assert error_of(res) == "Column not found"

    res = api_client.get(f"/api/admin/column/{column['id']}", other_scope.as_payload())
    assert res.status_code == 403


def test_column_delete_by_id(api_client, scope, column):
    res = api_client.delete(f"/api/admin/column/{column['id']}?companyId=C1&locationId=L1")

    assert res.status_code == 200
    assert res.json()["message"] == "Column deleted successfully"
    assert not Column.objects.filter(id=column["id"]).exists()
    assert MasterDataAuditLog.objects.filter(data_type="columns", action="DELETE").count() == 1


def test_obsolete_descriptions_flow(api_client, scope, column):
    first, second = (d["descriptionId"] for d in column["descriptions"])

    res = api_client.post(
        "/api/admin/obsolete-column",
        scoped(scope, id=column["id"], descriptionIds=[first]),
        format="json",
    )
    assert res.status_code == 200, res.json()
    assert res.json()["data"]["status"] == "active"

    res = api_client.get("/api/admin/obsolete-column", scope.as_payload())
    listed = res.json()["data"]
    assert [c["columnCode"] for c in listed] == ["C-001"]
    assert [d["descriptionId"] for d in listed[0]["descriptions"]] == [first]

    # the regular listing still shows both descriptions
    res = api_client.get("/api/admin/column", scope.as_payload())
    assert len(res.json()["data"][0]["descriptions"]) == 2

    res = api_client.delete(f"/api/admin/obsolete-column/{column['id']}?companyId=C1&locationId=L1")
    assert res.status_code == 200
    assert res.json()["message"] == "Obsolete column restored successfully"
    assert res.json()["data"]["descriptionsCount"] == 2

    assert api_client.get("/api/admin/obsolete-column", scope.as_payload()).json()["data"] == []
    assert {d["descriptionId"] for d in Column.objects.get(id=column["id"]).descriptions} == {first, second}


def test_obsolete_whole_column_and_unknown_description(api_client, scope, column):
    res = api_client.post(
        "/api/admin/obsolete-column",
        scoped(scope, id=column["id"], descriptionIds=["nope"]),
        format="json",
    )
    assert res.status_code == 400
    assert error_of(res) == "Description not found: nope"

    res = api_client.post("/api/admin/obsolete-column", scoped(scope, id=column["id"]), format="json")
    assert res.json()["data"]["status"] == "obsolete"
    assert res.json()["data"]["isObsolete"] is True

    # marking is an audited update
    assert MasterDataAuditLog.objects.filter(data_type="columns", action="UPDATE").count() == 1


def test_restore_requires_obsolete_descriptions(api_client, scope, column):
    res = api_client.delete(f"/api/admin/obsolete-column/{column['id']}?companyId=C1&locationId=L1")
    assert res.status_code == 404
    assert error_of(res) == "Obsolete column not found"
