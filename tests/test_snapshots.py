from datetime import date, datetime

import pytest

from personnel_trash.domain.entities import TrashEntry, TrashKind, TrashPage
from personnel_trash.domain.exceptions import (
    AlreadyRestoredError,
    InvalidSnapshotError,
)
from personnel_trash.infrastructure.database.snapshots import (
    ContractSnapshot,
    InstructorSnapshot,
    VisaSnapshot,
    decode_instructor_tree,
    decode_related_snapshot,
    decode_snapshot,
)

VISA_SNAPSHOT = {
    "id": "visa-1",
    "passport_id": "passport-1",
    "visa_type": "WORK",
    "issue_date": "2024-03-01",
    "expiry_date": "2025-03-01",
    "issuing_country": "Angola",
    "created_at": "2024-03-01T09:30:00",
    "updated_at": "2024-03-01T09:30:00",
}


def test_decode_switches_on_kind():
    decoded = decode_snapshot(TrashKind.VISA, VISA_SNAPSHOT)
    assert isinstance(decoded, VisaSnapshot)
    assert decoded.issue_date == date(2024, 3, 1)
    assert decoded.created_at == datetime(2024, 3, 1, 9, 30)


def test_decode_rejects_payload_of_other_kind():
    with pytest.raises(InvalidSnapshotError):
        decode_snapshot(TrashKind.CONTRACT, VISA_SNAPSHOT)


def test_instructor_snapshot_ignores_embedded_lookups():
    data = {
        "id": "i-1",
        "ci": "85010112345",
        "first_name": "Ana",
        "last_name": "Perez",
        "age": 39,
        "sex": "FEMALE",
        "created_at": "2024-01-01T00:00:00",
        "updated_at": "2024-01-01T00:00:00",
        "province_id": "p-1",
        "province": {"id": "p-1", "code": "HAB", "name": "La Habana"},
    }
    decoded = decode_snapshot(TrashKind.INSTRUCTOR, data)
    assert isinstance(decoded, InstructorSnapshot)
    assert decoded.province_id == "p-1"
    assert "province" not in decoded.model_dump()


def test_contract_snapshot_carries_extensions():
    data = {
        "id": "c-1",
        "sequence_number": 7,
        "year": 2024,
        "instructor_id": "i-1",
        "start_date": "2024-01-01",
        "end_date": "2024-12-31",
        "role": "Teacher",
        "workplace": "School",
        "created_at": "2024-01-01T00:00:00",
        "updated_at": "2024-01-01T00:00:00",
        "extensions": [
            {
                "id": "e-1",
                "contract_id": "c-1",
                "extension_number": 1,
                "start_date": "2025-01-01",
                "end_date": "2025-06-30",
                "reason": "Course extended",
                "created_at": "2024-12-01T00:00:00",
                "updated_at": "2024-12-01T00:00:00",
            }
        ],
    }
    decoded = decode_snapshot(TrashKind.CONTRACT, data)
    assert isinstance(decoded, ContractSnapshot)
    assert decoded.extensions[0].extension_number == 1


def test_related_snapshot_only_for_instructors():
    assert decode_related_snapshot(TrashKind.VISA, None) is None
    with pytest.raises(InvalidSnapshotError):
        decode_related_snapshot(TrashKind.VISA, {"passports": []})

    related = decode_related_snapshot(TrashKind.INSTRUCTOR, None)
    assert related.passports == []
    assert related.contracts == []


def test_instructor_tree_defaults_to_empty():
    related = decode_instructor_tree(None)
    assert related.passports == []
    assert related.contracts == []


def test_instructor_tree_rejects_malformed_children():
    with pytest.raises(InvalidSnapshotError):
        decode_instructor_tree({"passports": [{"number": "P1"}], "contracts": []})


def test_trash_entry_requires_related_snapshot_for_instructor():
    with pytest.raises(InvalidSnapshotError):
        TrashEntry(
            id="t-1",
            kind=TrashKind.INSTRUCTOR,
            source_id="i-1",
            snapshot={},
            deleted_by="alice",
        )


def test_trash_entry_rejects_overlong_reason():
    with pytest.raises(InvalidSnapshotError):
        TrashEntry(
            id="t-1",
            kind="VISA",
            source_id="v-1",
            snapshot=VISA_SNAPSHOT,
            deleted_by="alice",
            reason="x" * 501,
        )


def test_mark_restored_only_once():
    entry = TrashEntry(
        id="t-1",
        kind=TrashKind.VISA,
        source_id="v-1",
        snapshot=VISA_SNAPSHOT,
        deleted_by="alice",
    )
    entry.mark_restored("bob")
    assert entry.is_restored()
    assert entry.restored_by == "bob"

    with pytest.raises(AlreadyRestoredError):
        entry.mark_restored("carol")


def test_trash_page_total_pages():
    assert TrashPage(items=[], total=0, page=1, limit=10).total_pages == 0
    assert TrashPage(items=[], total=21, page=1, limit=10).total_pages == 3
