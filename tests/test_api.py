from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from personnel_trash.domain.entities import ContractStatus
from personnel_trash.infrastructure.database.database import get_session
from personnel_trash.infrastructure.database.models import Contract, Instructor, Visa
from personnel_trash.main import app


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def test_health(client: TestClient):
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_delete_visa_and_restore(
    client: TestClient, session: Session, make_instructor, make_passport, make_visa
):
    visa = make_visa(make_passport(make_instructor()))
    visa_id = visa.id

    response = client.delete(
        f"/api/v1/users/alice/visas/{visa_id}",
        params={"reason": "Wrong visa type"},
        headers={"X-User-Name": "Alice Smith"},
    )
    assert response.status_code == 200
    entry = response.json()
    assert entry["kind"] == "VISA"
    assert entry["source_id"] == visa_id
    assert entry["deleted_by_name"] == "Alice Smith"
    assert entry["reason"] == "Wrong visa type"
    assert entry["snapshot"]["id"] == visa_id
    assert "X-Request-ID" in response.headers

    response = client.post(f"/api/v1/users/bob/trash/{entry['id']}/restore")
    assert response.status_code == 200
    assert response.json()["restored_by"] == "bob"
    assert session.get(Visa, visa_id) is not None


def test_restore_twice_returns_problem_detail(
    client: TestClient, make_instructor, make_passport, make_visa
):
    visa = make_visa(make_passport(make_instructor()))
    entry_id = client.delete(f"/api/v1/users/alice/visas/{visa.id}").json()["id"]

    assert client.post(f"/api/v1/users/bob/trash/{entry_id}/restore").status_code == 200
    response = client.post(f"/api/v1/users/bob/trash/{entry_id}/restore")

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/problem+json")
    problem = response.json()
    assert problem["status"] == 400
    assert problem["instance"] == f"/api/v1/users/bob/trash/{entry_id}/restore"


def test_get_unknown_entry(client: TestClient):
    response = client.get("/api/v1/trash/does-not-exist")
    assert response.status_code == 404
    assert response.json()["resource_type"] == "trash_entry"


def test_restore_conflict_is_409(
    client: TestClient,
    session: Session,
    instructor_with_records: Instructor,
    make_instructor,
    make_passport,
):
    instructor_id = instructor_with_records.id
    entry = client.delete(f"/api/v1/users/alice/instructors/{instructor_id}").json()
    make_passport(
        make_instructor(), number=entry["related_snapshot"]["passports"][0]["number"]
    )

    response = client.post(f"/api/v1/users/bob/trash/{entry['id']}/restore")

    assert response.status_code == 409
    assert session.get(Instructor, instructor_id) is None


def test_delete_instructor_with_active_contract(
    client: TestClient, make_instructor, make_contract
):
    instructor = make_instructor()
    make_contract(instructor, status=ContractStatus.ACTIVE)

    response = client.delete(f"/api/v1/users/alice/instructors/{instructor.id}")
    assert response.status_code == 400


def test_delete_unknown_extension(client: TestClient):
    response = client.delete("/api/v1/users/alice/extensions/nope")
    assert response.status_code == 404


def test_delete_extension_recomputes_contract(
    client: TestClient, session: Session, make_instructor, make_contract, make_extension
):
    contract = make_contract(make_instructor(), status=ContractStatus.EXTENDED)
    contract_id = contract.id
    extension = make_extension(contract, 1, date(2025, 1, 1), date(2025, 3, 31))

    response = client.delete(f"/api/v1/users/alice/extensions/{extension.id}")

    assert response.status_code == 200
    assert response.json()["kind"] == "EXTENSION"
    listed = client.get("/api/v1/trash", params={"kind": "EXTENSION"}).json()
    assert listed["meta"]["total"] == 1
    assert session.get(Contract, contract_id).status == ContractStatus.ACTIVE


def test_list_trash_meta_and_paging(
    client: TestClient, make_instructor, make_passport, make_visa
):
    passport = make_passport(make_instructor())
    for _ in range(3):
        visa = make_visa(passport)
        client.delete(f"/api/v1/users/alice/visas/{visa.id}")

    response = client.get("/api/v1/trash", params={"page": 2, "limit": 2})
    assert response.status_code == 200
    body = response.json()
    assert body["meta"] == {"total": 3, "page": 2, "limit": 2, "total_pages": 2}
    assert len(body["items"]) == 1


def test_list_trash_bad_page(client: TestClient):
    response = client.get("/api/v1/trash", params={"page": 0})
    assert response.status_code == 400


def test_list_trash_unknown_kind(client: TestClient):
    response = client.get("/api/v1/trash", params={"kind": "VEHICLE"})
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "kind"


def test_purge_endpoints(client: TestClient, make_instructor, make_passport, make_visa):
    passport = make_passport(make_instructor())
    first = client.delete(
        f"/api/v1/users/alice/visas/{make_visa(passport).id}"
    ).json()
    second = client.delete(
        f"/api/v1/users/alice/visas/{make_visa(passport).id}"
    ).json()

    client.post(f"/api/v1/users/bob/trash/{first['id']}/restore")
    response = client.post("/api/v1/trash/purge")
    assert response.status_code == 200
    assert response.json() == {"removed": 1}

    response = client.delete(f"/api/v1/trash/{second['id']}")
    assert response.status_code == 204
    assert client.get(f"/api/v1/trash/{second['id']}").status_code == 404
    assert client.delete(f"/api/v1/trash/{second['id']}").status_code == 404
