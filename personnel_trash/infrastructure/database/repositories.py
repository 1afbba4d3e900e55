"""Infrastructure layer - Repository implementations.

Repositories never commit. They flush so constraint violations surface at
the statement that caused them, and leave the transaction boundary to the
application service that owns the unit of work.
"""

from datetime import datetime
from typing import Generic, TypeVar

from sqlalchemy import delete, func, update
from sqlalchemy.orm import selectinload
from sqlmodel import Session, SQLModel, select

from ...domain.entities import ContractStatus, TrashEntry, TrashKind
from .models import Contract, Extension, Instructor, Passport, Visa
from .trash_models import TrashEntryRecord

ModelT = TypeVar("ModelT", bound=SQLModel)


class RecordRepository(Generic[ModelT]):
    """Gateway to one live record table."""

    model: type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, record_id: str) -> ModelT | None:
        return self.session.get(self.model, record_id)

    def exists(self, record_id: str) -> bool:
        statement = select(self.model.id).where(self.model.id == record_id)  # type: ignore[attr-defined]
        return self.session.exec(statement).first() is not None

    def insert(self, record: ModelT) -> ModelT:
        """Add a row and flush it, raising IntegrityError on constraint violations."""
        self.session.add(record)
        self.session.flush()
        return record

    def delete(self, record: ModelT) -> None:
        self.session.delete(record)
        self.session.flush()


class InstructorRepository(RecordRepository[Instructor]):
    model = Instructor

    def find_with_owned_records(self, instructor_id: str) -> Instructor | None:
        """Load an instructor with its lookups and its whole owned sub-tree."""
        statement = (
            select(Instructor)
            .options(
                selectinload(Instructor.province),  # type: ignore[arg-type]
                selectinload(Instructor.municipality),  # type: ignore[arg-type]
                selectinload(Instructor.position),  # type: ignore[arg-type]
                selectinload(Instructor.specialty),  # type: ignore[arg-type]
                selectinload(Instructor.teaching_category),  # type: ignore[arg-type]
                selectinload(Instructor.birth_country),  # type: ignore[arg-type]
                selectinload(Instructor.passports).selectinload(Passport.visas),  # type: ignore[arg-type]
                selectinload(Instructor.contracts).selectinload(Contract.extensions),  # type: ignore[arg-type]
            )
            .where(Instructor.id == instructor_id)
        )
        return self.session.exec(statement).first()


class PassportRepository(RecordRepository[Passport]):
    model = Passport

    def count_visas(self, passport_id: str) -> int:
        statement = (
            select(func.count())
            .select_from(Visa)
            .where(Visa.passport_id == passport_id)
        )
        return self.session.exec(statement).one()


class VisaRepository(RecordRepository[Visa]):
    model = Visa


class ContractRepository(RecordRepository[Contract]):
    model = Contract

    def find_for_instructor(
        self, instructor_id: str, statuses: frozenset[ContractStatus] | None = None
    ) -> list[Contract]:
        statement = select(Contract).where(Contract.instructor_id == instructor_id)
        if statuses is not None:
            statement = statement.where(Contract.status.in_(statuses))  # type: ignore[attr-defined]
        return list(self.session.exec(statement).all())

    def count_extensions(self, contract_id: str) -> int:
        statement = (
            select(func.count())
            .select_from(Extension)
            .where(Extension.contract_id == contract_id)
        )
        return self.session.exec(statement).one()


class ExtensionRepository(RecordRepository[Extension]):
    model = Extension

    def find_for_contract(self, contract_id: str) -> list[Extension]:
        """Extensions of a contract ordered by extension number."""
        statement = (
            select(Extension)
            .where(Extension.contract_id == contract_id)
            .order_by(Extension.extension_number)  # type: ignore[arg-type]
        )
        return list(self.session.exec(statement).all())


class TrashRepository:
    """Repository for trash entry persistence operations."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, entry: TrashEntry) -> TrashEntry:
        record = TrashEntryRecord.from_domain(entry)
        self.session.add(record)
        self.session.flush()
        return record.to_domain()

    def find_by_id(self, entry_id: str) -> TrashEntry | None:
        record = self.session.get(TrashEntryRecord, entry_id)
        return record.to_domain() if record else None

    def find_pending(self, kind: TrashKind, source_id: str) -> TrashEntry | None:
        """The entry for this record still awaiting restoration, if any."""
        statement = select(TrashEntryRecord).where(
            TrashEntryRecord.kind == kind,
            TrashEntryRecord.source_id == source_id,
            TrashEntryRecord.restored_at.is_(None),  # type: ignore[union-attr]
        )
        record = self.session.exec(statement).first()
        return record.to_domain() if record else None

    def find_page(
        self,
        kind: TrashKind | None,
        include_restored: bool,
        offset: int,
        limit: int,
    ) -> tuple[list[TrashEntry], int]:
        """Entries newest first, plus the total matching the filter."""
        conditions = []
        if kind is not None:
            conditions.append(TrashEntryRecord.kind == kind)
        if not include_restored:
            conditions.append(TrashEntryRecord.restored_at.is_(None))  # type: ignore[union-attr]

        statement = (
            select(TrashEntryRecord)
            .where(*conditions)
            .order_by(
                TrashEntryRecord.created_at.desc(),  # type: ignore[attr-defined]
                TrashEntryRecord.id,
            )
            .offset(offset)
            .limit(limit)
        )
        count_statement = (
            select(func.count()).select_from(TrashEntryRecord).where(*conditions)
        )

        records = self.session.exec(statement).all()
        total = self.session.exec(count_statement).one()
        return [record.to_domain() for record in records], total

    def claim_for_restore(self, entry_id: str, user: str, when: datetime) -> bool:
        """Set restored_at/restored_by only if the entry is still pending.

        A single conditional UPDATE, so of two concurrent restores only one
        sees a row count of 1.
        """
        statement = (
            update(TrashEntryRecord)
            .where(
                TrashEntryRecord.id == entry_id,  # type: ignore[arg-type]
                TrashEntryRecord.restored_at.is_(None),  # type: ignore[union-attr]
            )
            .values(restored_at=when, restored_by=user)
        )
        result = self.session.connection().execute(statement)
        return result.rowcount == 1

    def delete(self, entry_id: str) -> TrashEntry | None:
        """Delete one entry, returning what was deleted."""
        record = self.session.get(TrashEntryRecord, entry_id)
        if record is None:
            return None
        entry = record.to_domain()
        self.session.delete(record)
        self.session.flush()
        return entry

    def delete_restored(self) -> int:
        """Bulk-delete every restored entry; returns how many went."""
        statement = delete(TrashEntryRecord).where(
            TrashEntryRecord.restored_at.is_not(None)  # type: ignore[union-attr]
        )
        result = self.session.connection().execute(statement)
        return result.rowcount
