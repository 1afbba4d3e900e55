from datetime import date, datetime

import pytest
from sqlmodel import Session

from personnel_trash.application.deletion_service import DeletionService
from personnel_trash.application.trash_service import TrashService
from personnel_trash.domain.constants import DEFAULT_VISA_DELETE_REASON
from personnel_trash.domain.entities import ContractStatus, TrashKind
from personnel_trash.domain.exceptions import (
    AlreadyInTrashError,
    BadRequestError,
    ExtensionNotLastError,
    HasDependentRecordsError,
    InstructorHasActiveContractsError,
    RecordNotFoundError,
)
from personnel_trash.infrastructure.database.models import (
    Contract,
    Extension,
    Instructor,
    Passport,
)
from personnel_trash.infrastructure.database.snapshots import encode_row


def test_delete_visa_uses_default_reason_and_display_name(
    session: Session, make_instructor, make_passport, make_visa
):
    visa = make_visa(make_passport(make_instructor()))
    entry = DeletionService(session).delete_visa(
        visa.id, "alice", deleted_by_name="Alice Smith"
    )

    assert entry.kind == TrashKind.VISA
    assert entry.reason == DEFAULT_VISA_DELETE_REASON
    assert entry.deleted_by == "alice"
    assert entry.deleted_by_name == "Alice Smith"
    assert entry.related_snapshot is None


def test_delete_missing_record(session: Session):
    deletion = DeletionService(session)
    with pytest.raises(RecordNotFoundError):
        deletion.delete_instructor("missing", "alice")
    with pytest.raises(RecordNotFoundError):
        deletion.delete_extension("missing", "alice")


def test_instructor_with_active_contract_cannot_be_deleted(
    session: Session, make_instructor, make_contract
):
    instructor = make_instructor()
    make_contract(instructor, status=ContractStatus.EXTENDED)

    with pytest.raises(InstructorHasActiveContractsError):
        DeletionService(session).delete_instructor(instructor.id, "alice")

    assert session.get(Instructor, instructor.id) is not None
    assert TrashService(session).list_entries().total == 0


def test_instructor_with_cancelled_contract_can_be_deleted(
    session: Session, make_instructor, make_contract
):
    instructor = make_instructor()
    instructor_id = instructor.id
    make_contract(instructor, status=ContractStatus.CANCELLED)

    entry = DeletionService(session).delete_instructor(instructor_id, "alice")

    assert session.get(Instructor, instructor_id) is None
    assert len(entry.related_snapshot["contracts"]) == 1


def test_passport_with_visas_cannot_be_deleted(
    session: Session, make_instructor, make_passport, make_visa
):
    passport = make_passport(make_instructor())
    make_visa(passport)

    with pytest.raises(HasDependentRecordsError):
        DeletionService(session).delete_passport(passport.id, "alice")
    assert session.get(Passport, passport.id) is not None


def test_contract_with_extensions_cannot_be_deleted(
    session: Session, make_instructor, make_contract, make_extension
):
    contract = make_contract(make_instructor())
    make_extension(contract, 1, date(2025, 1, 1), date(2025, 3, 31))

    with pytest.raises(HasDependentRecordsError):
        DeletionService(session).delete_contract(contract.id, "alice")


def test_delete_contract_round_trip(session: Session, make_instructor, make_contract):
    old = datetime(2020, 1, 1)
    contract = make_contract(
        make_instructor(),
        workplace="Benguela School",
        created_at=old,
        updated_at=old,
    )
    contract_id = contract.id
    before = encode_row(contract)

    entry = DeletionService(session).delete_contract(contract_id, "alice")
    assert entry.snapshot["extensions"] == []
    assert session.get(Contract, contract_id) is None

    TrashService(session).restore(entry.id, "bob")
    restored = session.get(Contract, contract_id)
    assert restored is not None
    assert restored.workplace == "Benguela School"
    stamps = ("created_at", "updated_at")
    assert {k: v for k, v in encode_row(restored).items() if k not in stamps} == {
        k: v for k, v in before.items() if k not in stamps
    }
    assert restored.created_at > old
    assert restored.updated_at > old


def test_delete_fails_cleanly_when_already_in_trash(
    session: Session, make_instructor, make_passport, make_visa
):
    """A stale pending entry blocks the delete and the live row survives."""
    visa = make_visa(make_passport(make_instructor()))
    TrashService(session).capture(TrashKind.VISA, visa.id, encode_row(visa), "bob")

    with pytest.raises(AlreadyInTrashError):
        DeletionService(session).delete_visa(visa.id, "alice")


def test_only_last_extension_can_be_deleted(
    session: Session, make_instructor, make_contract, make_extension
):
    contract = make_contract(make_instructor(), status=ContractStatus.EXTENDED)
    first = make_extension(contract, 1, date(2025, 1, 1), date(2025, 6, 30))
    make_extension(contract, 2, date(2025, 7, 1), date(2025, 12, 31))

    with pytest.raises(ExtensionNotLastError):
        DeletionService(session).delete_extension(first.id, "alice")


def test_extension_of_closed_contract_cannot_be_deleted(
    session: Session, make_instructor, make_contract, make_extension
):
    contract = make_contract(make_instructor(), status=ContractStatus.CLOSED)
    extension = make_extension(contract, 1, date(2025, 1, 1), date(2025, 6, 30))

    with pytest.raises(BadRequestError):
        DeletionService(session).delete_extension(extension.id, "alice")


def test_deleting_last_extension_falls_back_to_previous(
    session: Session, make_instructor, make_contract, make_extension
):
    contract = make_contract(
        make_instructor(),
        end_date=date(2024, 12, 31),
        status=ContractStatus.EXTENDED,
    )
    contract_id = contract.id
    make_extension(contract, 1, date(2025, 1, 1), date(2025, 6, 30))
    second = make_extension(contract, 2, date(2025, 7, 1), date(2025, 12, 31))

    DeletionService(session).delete_extension(second.id, "alice")

    contract = session.get(Contract, contract_id)
    assert contract.end_date == date(2025, 6, 30)
    assert contract.status == ContractStatus.EXTENDED


def test_deleting_only_extension_restores_original_end(
    session: Session, make_instructor, make_contract, make_extension
):
    contract = make_contract(
        make_instructor(),
        end_date=date(2024, 12, 31),
        status=ContractStatus.EXTENDED,
    )
    contract_id = contract.id
    extension = make_extension(contract, 1, date(2025, 1, 1), date(2025, 6, 30))
    extension_id = extension.id

    entry = DeletionService(session).delete_extension(extension_id, "alice")

    contract = session.get(Contract, contract_id)
    assert contract.end_date == date(2024, 12, 31)
    assert contract.status == ContractStatus.ACTIVE

    # Restoring the extension replays the row without touching the contract
    TrashService(session).restore(entry.id, "bob")
    assert session.get(Extension, extension_id) is not None
    contract = session.get(Contract, contract_id)
    assert contract.end_date == date(2024, 12, 31)
    assert contract.status == ContractStatus.ACTIVE
