from datetime import date

from sqlmodel import Session

from personnel_trash.application.contract_lifecycle import (
    effective_end_date,
    end_date_after_extension_removal,
    has_active_contracts,
)
from personnel_trash.domain.entities import ContractStatus
from personnel_trash.infrastructure.database.models import Extension


def _extension(number: int, start: date, end: date) -> Extension:
    return Extension(
        contract_id="c-1",
        extension_number=number,
        start_date=start,
        end_date=end,
        reason="Course extended",
    )


def test_effective_end_date_without_extensions():
    assert effective_end_date(date(2024, 12, 31), []) == date(2024, 12, 31)


def test_effective_end_date_uses_highest_extension_number():
    extensions = [
        _extension(2, date(2025, 7, 1), date(2025, 12, 31)),
        _extension(1, date(2025, 1, 1), date(2025, 6, 30)),
    ]
    assert effective_end_date(date(2024, 12, 31), extensions) == date(2025, 12, 31)


def test_removing_only_extension_reverts_to_day_before_it_started():
    removed = _extension(1, date(2025, 1, 1), date(2025, 6, 30))
    end, status = end_date_after_extension_removal(removed, [])
    assert end == date(2024, 12, 31)
    assert status == ContractStatus.ACTIVE


def test_removing_last_of_several_extensions():
    remaining = [_extension(1, date(2025, 1, 1), date(2025, 6, 30))]
    removed = _extension(2, date(2025, 7, 1), date(2025, 12, 31))
    end, status = end_date_after_extension_removal(removed, remaining)
    assert end == date(2025, 6, 30)
    assert status == ContractStatus.EXTENDED


def test_has_active_contracts(session: Session, make_instructor, make_contract):
    instructor = make_instructor()
    assert not has_active_contracts(session, instructor.id)

    make_contract(instructor, status=ContractStatus.CLOSED)
    assert not has_active_contracts(session, instructor.id)

    make_contract(instructor, status=ContractStatus.ACTIVE)
    assert has_active_contracts(session, instructor.id)


def test_terminal_statuses():
    assert ContractStatus.CLOSED.is_terminal
    assert ContractStatus.CANCELLED.is_terminal
    assert not ContractStatus.EXTENDED.is_terminal
