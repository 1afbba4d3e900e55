"""Turn decoded trash snapshots back into live rows.

One reconstructor per ``TrashKind``. Rows are re-created under their original
ids. Inserts go parent first, and each one is flushed, so a constraint
violation aborts the restore at the row that caused it. The caller owns the
transaction and rolls everything back on failure.
"""

from datetime import datetime
from typing import Any, Final

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel

from ..domain.entities import TrashKind
from ..domain.exceptions import RecordAlreadyExistsError, RestoreConflictError
from ..infrastructure.database.models import (
    Contract,
    Extension,
    Instructor,
    Passport,
    Visa,
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
    decode_instructor_tree,
    decode_snapshot,
)
from ..logging_config import get_logger

logger: Final = get_logger(__name__)

# Owned collections a snapshot may embed; never columns of the row itself
_NESTED_FIELDS: Final = {"visas", "extensions"}


def _insert(
    repository: RecordRepository,
    row: SQLModel,
    kind: TrashKind,
    source_id: str,
) -> None:
    try:
        repository.insert(row)
    except IntegrityError as e:
        table = type(row).__tablename__
        logger.warning(
            "Restore insert violated a constraint",
            kind=kind.value,
            source_id=source_id,
            table=table,
            row_id=getattr(row, "id", None),
        )
        raise RestoreConflictError(
            kind.value, source_id, f"{table} row conflicts with live data ({e.orig})"
        ) from e


class ShallowReconstructor:
    """Restores a kind that owns nothing: one row, fresh timestamps."""

    def __init__(
        self,
        kind: TrashKind,
        model: type[SQLModel],
        repository_cls: type[RecordRepository],
    ):
        self.kind = kind
        self.model = model
        self.repository_cls = repository_cls

    def exists(self, session: Session, source_id: str) -> bool:
        return self.repository_cls(session).exists(source_id)

    def restore(
        self,
        session: Session,
        source_id: str,
        snapshot: dict[str, Any],
        related_snapshot: dict[str, Any] | None = None,
    ) -> int:
        """Insert the snapshot row at ``source_id``; returns rows inserted."""
        decoded = decode_snapshot(self.kind, snapshot)
        now = datetime.now()
        row = self.model.model_validate(
            {
                **decoded.model_dump(exclude=_NESTED_FIELDS),
                "id": source_id,
                "created_at": now,
                "updated_at": now,
            }
        )
        _insert(self.repository_cls(session), row, self.kind, source_id)
        logger.debug("Restored row", kind=self.kind.value, source_id=source_id)
        return 1


class InstructorReconstructor:
    """Restores an instructor together with its passports, visas, contracts
    and extensions."""

    kind = TrashKind.INSTRUCTOR

    def exists(self, session: Session, source_id: str) -> bool:
        return InstructorRepository(session).exists(source_id)

    def restore(
        self,
        session: Session,
        source_id: str,
        snapshot: dict[str, Any],
        related_snapshot: dict[str, Any] | None = None,
    ) -> int:
        instructors = InstructorRepository(session)
        passports = PassportRepository(session)
        visas = VisaRepository(session)
        contracts = ContractRepository(session)
        extensions = ExtensionRepository(session)

        if instructors.exists(source_id):
            raise RecordAlreadyExistsError(self.kind.value, source_id)

        # Decoding drops province/municipality/... objects; only their ids
        # are columns
        decoded = decode_snapshot(self.kind, snapshot)
        related = decode_instructor_tree(related_snapshot)

        now = datetime.now()
        instructor = Instructor.model_validate(
            {
                **decoded.model_dump(),
                "id": source_id,
                "created_at": now,
                "updated_at": now,
            }
        )
        _insert(instructors, instructor, self.kind, source_id)
        rows = 1

        for passport in related.passports:
            _insert(
                passports,
                Passport.model_validate(
                    {
                        **passport.model_dump(exclude=_NESTED_FIELDS),
                        "instructor_id": source_id,
                    }
                ),
                self.kind,
                source_id,
            )
            rows += 1
            for visa in passport.visas:
                _insert(
                    visas,
                    Visa.model_validate({**visa.model_dump(), "passport_id": passport.id}),
                    self.kind,
                    source_id,
                )
                rows += 1

        for contract in related.contracts:
            _insert(
                contracts,
                Contract.model_validate(
                    {
                        **contract.model_dump(exclude=_NESTED_FIELDS),
                        "instructor_id": source_id,
                    }
                ),
                self.kind,
                source_id,
            )
            rows += 1
            for extension in contract.extensions:
                _insert(
                    extensions,
                    Extension.model_validate(
                        {**extension.model_dump(), "contract_id": contract.id}
                    ),
                    self.kind,
                    source_id,
                )
                rows += 1

        logger.debug(
            "Restored instructor sub-tree",
            source_id=source_id,
            passports=len(related.passports),
            contracts=len(related.contracts),
            rows=rows,
        )
        return rows


Reconstructor = ShallowReconstructor | InstructorReconstructor

RECONSTRUCTORS: Final[dict[TrashKind, Reconstructor]] = {
    TrashKind.INSTRUCTOR: InstructorReconstructor(),
    TrashKind.PASSPORT: ShallowReconstructor(
        TrashKind.PASSPORT, Passport, PassportRepository
    ),
    TrashKind.VISA: ShallowReconstructor(TrashKind.VISA, Visa, VisaRepository),
    TrashKind.CONTRACT: ShallowReconstructor(
        TrashKind.CONTRACT, Contract, ContractRepository
    ),
    TrashKind.EXTENSION: ShallowReconstructor(
        TrashKind.EXTENSION, Extension, ExtensionRepository
    ),
}
