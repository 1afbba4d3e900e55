"""Delete live records by moving them to the trash.

Each delete captures the snapshot first and removes the live rows second,
inside one transaction: if the capture fails nothing is deleted, and if the
delete fails no trash entry is left behind.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any, Final

from sqlmodel import Session, SQLModel

from ..domain.constants import (
    DEFAULT_CONTRACT_DELETE_REASON,
    DEFAULT_EXTENSION_DELETE_REASON,
    DEFAULT_INSTRUCTOR_DELETE_REASON,
    DEFAULT_PASSPORT_DELETE_REASON,
    DEFAULT_VISA_DELETE_REASON,
)
from ..domain.entities import ContractStatus, TrashEntry, TrashKind
from ..domain.exceptions import (
    BadRequestError,
    ExtensionNotLastError,
    HasDependentRecordsError,
    InstructorHasActiveContractsError,
    RecordNotFoundError,
)
from ..infrastructure.database.repositories import (
    ContractRepository,
    ExtensionRepository,
    InstructorRepository,
    PassportRepository,
    RecordRepository,
    VisaRepository,
)
from ..infrastructure.database.snapshots import (
    encode_contract,
    encode_instructor,
    encode_row,
)
from ..logging_config import get_logger
from ..logging_utils import log_user_action
from .contract_lifecycle import end_date_after_extension_removal, has_active_contracts
from .trash_service import TrashService

logger: Final = get_logger(__name__)


class DeletionService:
    """Application service for deleting records into the trash."""

    def __init__(self, session: Session):
        self.session = session
        self.trash = TrashService(session)
        self.instructors = InstructorRepository(session)
        self.passports = PassportRepository(session)
        self.visas = VisaRepository(session)
        self.contracts = ContractRepository(session)
        self.extensions = ExtensionRepository(session)

    def _capture_then_delete(
        self,
        kind: TrashKind,
        repository: RecordRepository,
        record: SQLModel,
        snapshot: dict[str, Any],
        deleted_by: str,
        deleted_by_name: str | None,
        reason: str,
        related_snapshot: dict[str, Any] | None = None,
        after_delete: Callable[[], None] | None = None,
    ) -> TrashEntry:
        record_id: str = record.id  # type: ignore[attr-defined]
        try:
            entry = self.trash.move_to_trash(
                kind,
                record_id,
                snapshot,
                deleted_by,
                deleted_by_name=deleted_by_name,
                reason=reason,
                related_snapshot=related_snapshot,
            )
            repository.delete(record)
            if after_delete is not None:
                after_delete()
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.warning(
                "Delete aborted, nothing moved to trash",
                kind=kind.value,
                record_id=record_id,
            )
            raise

        self.trash.record_captured(entry)
        log_user_action(
            f"delete_{kind.value.lower()}",
            deleted_by,
            record_id=record_id,
            entry_id=entry.id,
        )
        return entry

    def delete_instructor(
        self,
        instructor_id: str,
        deleted_by: str,
        deleted_by_name: str | None = None,
        reason: str | None = None,
    ) -> TrashEntry:
        """Trash an instructor with its passports, visas, contracts and extensions.

        Raises:
            RecordNotFoundError: No such instructor
            InstructorHasActiveContractsError: A contract is still running
        """
        instructor = self.instructors.find_with_owned_records(instructor_id)
        if instructor is None:
            raise RecordNotFoundError(TrashKind.INSTRUCTOR.value, instructor_id)

        if has_active_contracts(self.session, instructor_id):
            logger.warning(
                "Instructor deletion blocked by active contracts",
                instructor_id=instructor_id,
            )
            raise InstructorHasActiveContractsError(instructor_id)

        snapshot, related = encode_instructor(instructor)
        return self._capture_then_delete(
            TrashKind.INSTRUCTOR,
            self.instructors,
            instructor,
            snapshot,
            deleted_by,
            deleted_by_name,
            reason or DEFAULT_INSTRUCTOR_DELETE_REASON,
            related_snapshot=related,
        )

    def delete_passport(
        self,
        passport_id: str,
        deleted_by: str,
        deleted_by_name: str | None = None,
        reason: str | None = None,
    ) -> TrashEntry:
        passport = self.passports.find_by_id(passport_id)
        if passport is None:
            raise RecordNotFoundError(TrashKind.PASSPORT.value, passport_id)

        if self.passports.count_visas(passport_id):
            raise HasDependentRecordsError(
                TrashKind.PASSPORT.value, passport_id, "visas"
            )

        return self._capture_then_delete(
            TrashKind.PASSPORT,
            self.passports,
            passport,
            encode_row(passport),
            deleted_by,
            deleted_by_name,
            reason or DEFAULT_PASSPORT_DELETE_REASON,
        )

    def delete_visa(
        self,
        visa_id: str,
        deleted_by: str,
        deleted_by_name: str | None = None,
        reason: str | None = None,
    ) -> TrashEntry:
        visa = self.visas.find_by_id(visa_id)
        if visa is None:
            raise RecordNotFoundError(TrashKind.VISA.value, visa_id)

        return self._capture_then_delete(
            TrashKind.VISA,
            self.visas,
            visa,
            encode_row(visa),
            deleted_by,
            deleted_by_name,
            reason or DEFAULT_VISA_DELETE_REASON,
        )

    def delete_contract(
        self,
        contract_id: str,
        deleted_by: str,
        deleted_by_name: str | None = None,
        reason: str | None = None,
    ) -> TrashEntry:
        contract = self.contracts.find_by_id(contract_id)
        if contract is None:
            raise RecordNotFoundError(TrashKind.CONTRACT.value, contract_id)

        if self.contracts.count_extensions(contract_id):
            raise HasDependentRecordsError(
                TrashKind.CONTRACT.value, contract_id, "extensions"
            )

        return self._capture_then_delete(
            TrashKind.CONTRACT,
            self.contracts,
            contract,
            encode_contract(contract),
            deleted_by,
            deleted_by_name,
            reason or DEFAULT_CONTRACT_DELETE_REASON,
        )

    def delete_extension(
        self,
        extension_id: str,
        deleted_by: str,
        deleted_by_name: str | None = None,
        reason: str | None = None,
    ) -> TrashEntry:
        """Trash the last extension of a contract and roll back its end date.

        Raises:
            RecordNotFoundError: No such extension
            BadRequestError: The contract is closed
            ExtensionNotLastError: A later extension exists
        """
        extension = self.extensions.find_by_id(extension_id)
        if extension is None:
            raise RecordNotFoundError(TrashKind.EXTENSION.value, extension_id)

        contract = self.contracts.find_by_id(extension.contract_id)
        if contract is None:
            raise RecordNotFoundError(TrashKind.CONTRACT.value, extension.contract_id)

        if contract.status == ContractStatus.CLOSED:
            raise BadRequestError("Cannot delete extensions of a closed contract")

        siblings = self.extensions.find_for_contract(contract.id)
        if siblings and siblings[-1].id != extension.id:
            raise ExtensionNotLastError(
                "Only the last extension of a contract can be deleted"
            )
        remaining = [e for e in siblings if e.id != extension.id]

        def _revert_contract_end() -> None:
            end_date, status = end_date_after_extension_removal(extension, remaining)
            logger.debug(
                "Contract end date reverted",
                contract_id=contract.id,
                old_end_date=str(contract.end_date),
                new_end_date=str(end_date),
                status=status.value,
            )
            contract.end_date = end_date
            contract.status = status
            contract.updated_at = datetime.now()
            self.session.add(contract)
            self.session.flush()

        return self._capture_then_delete(
            TrashKind.EXTENSION,
            self.extensions,
            extension,
            encode_row(extension),
            deleted_by,
            deleted_by_name,
            reason or DEFAULT_EXTENSION_DELETE_REASON,
            after_delete=_revert_contract_end,
        )
