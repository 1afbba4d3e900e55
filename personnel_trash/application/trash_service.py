"""Persistent recycle bin for deleted personnel records.

Deleting a top-level record stores a snapshot of it (and, for instructors, of
the sub-tree it owns) as a trash entry. Entries stay until an operator either
restores them, which re-inserts the rows under their original ids exactly
once, or purges them for good.
"""

from datetime import datetime
from typing import Any, Final

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from .. import metrics
from ..config import settings
from ..domain.entities import TrashEntry, TrashKind, TrashPage
from ..domain.exceptions import (
    AlreadyInTrashError,
    AlreadyRestoredError,
    BadRequestError,
    DomainError,
    RecordAlreadyExistsError,
    TrashEntryNotFoundError,
    UnsupportedKindError,
)
from ..infrastructure.database.models import new_id
from ..infrastructure.database.repositories import TrashRepository
from ..infrastructure.database.snapshots import (
    decode_related_snapshot,
    decode_snapshot,
)
from ..logging_config import get_logger
from ..logging_utils import log_database_operation, log_user_action
from .reconstruction import RECONSTRUCTORS

logger: Final = get_logger(__name__)

_EMPTY_INSTRUCTOR_TREE: Final = {"passports": [], "contracts": []}


def _as_kind(kind: TrashKind | str) -> TrashKind:
    try:
        return TrashKind(kind)
    except ValueError as e:
        raise UnsupportedKindError(str(kind)) from e


class TrashService:
    """Application service for the recycle bin.

    Owns every trash entry row. Live rows are only touched through the
    reconstructors during restore.
    """

    def __init__(self, session: Session):
        self.session = session
        self.trash_repo = TrashRepository(session)

    # Capture

    def move_to_trash(
        self,
        kind: TrashKind | str,
        source_id: str,
        snapshot: dict[str, Any],
        deleted_by: str,
        deleted_by_name: str | None = None,
        reason: str | None = None,
        related_snapshot: dict[str, Any] | None = None,
    ) -> TrashEntry:
        """Store a snapshot inside the caller's unit of work.

        Flushes but does not commit, so the caller can delete the live record
        in the same transaction and commit (or roll back) both together.

        Raises:
            AlreadyInTrashError: The record already waits in the trash
            InvalidSnapshotError: The snapshot does not fit its kind
        """
        trash_kind = _as_kind(kind)

        if self.trash_repo.find_pending(trash_kind, source_id):
            logger.warning(
                "Capture rejected - already in trash",
                kind=trash_kind.value,
                source_id=source_id,
            )
            raise AlreadyInTrashError(trash_kind.value, source_id)

        if trash_kind.owns_children and related_snapshot is None:
            related_snapshot = dict(_EMPTY_INSTRUCTOR_TREE)

        # Reject payloads that could never be restored
        decode_snapshot(trash_kind, snapshot)
        decode_related_snapshot(trash_kind, related_snapshot)

        entry = TrashEntry(
            id=new_id(),
            kind=trash_kind,
            source_id=source_id,
            snapshot=snapshot,
            related_snapshot=related_snapshot,
            deleted_by=deleted_by,
            deleted_by_name=deleted_by_name,
            reason=reason,
            created_at=datetime.now(),
        )

        try:
            stored = self.trash_repo.add(entry)
        except IntegrityError as e:
            # Lost a race with a concurrent capture of the same record
            raise AlreadyInTrashError(trash_kind.value, source_id) from e

        logger.debug(
            "Snapshot stored in trash",
            entry_id=stored.id,
            kind=trash_kind.value,
            source_id=source_id,
        )
        return stored

    def capture(
        self,
        kind: TrashKind | str,
        source_id: str,
        snapshot: dict[str, Any],
        deleted_by: str,
        deleted_by_name: str | None = None,
        reason: str | None = None,
        related_snapshot: dict[str, Any] | None = None,
    ) -> TrashEntry:
        """Store a snapshot as its own transaction."""
        try:
            entry = self.move_to_trash(
                kind,
                source_id,
                snapshot,
                deleted_by,
                deleted_by_name=deleted_by_name,
                reason=reason,
                related_snapshot=related_snapshot,
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.record_captured(entry)
        return entry

    def record_captured(self, entry: TrashEntry) -> None:
        """Report a committed capture to logs and metrics."""
        metrics.record_capture(entry.kind.value)
        log_database_operation(
            operation="capture",
            table="trash_entries",
            success=True,
            entry_id=entry.id,
            kind=entry.kind.value,
            source_id=entry.source_id,
        )
        logger.info(
            "Record moved to trash",
            entry_id=entry.id,
            kind=entry.kind.value,
            source_id=entry.source_id,
            deleted_by=entry.deleted_by,
        )

    # Inspection

    def list_entries(
        self,
        kind: TrashKind | str | None = None,
        page: int = 1,
        limit: int | None = None,
        include_restored: bool = False,
    ) -> TrashPage:
        """Entries newest first; only those awaiting restoration by default."""
        if limit is None:
            limit = settings.trash_page_size
        if page < 1:
            raise BadRequestError("Page must be 1 or greater")
        if limit < 1 or limit > settings.trash_max_page_size:
            raise BadRequestError(
                f"Limit must be between 1 and {settings.trash_max_page_size}"
            )

        trash_kind = _as_kind(kind) if kind is not None else None
        items, total = self.trash_repo.find_page(
            trash_kind, include_restored, offset=(page - 1) * limit, limit=limit
        )
        return TrashPage(items=items, total=total, page=page, limit=limit)

    def get_entry(self, entry_id: str) -> TrashEntry:
        entry = self.trash_repo.find_by_id(entry_id)
        if entry is None:
            raise TrashEntryNotFoundError(entry_id)
        return entry

    # Restore

    def restore(self, entry_id: str, restored_by: str) -> TrashEntry:
        """Re-insert a trashed record (and its sub-tree) under its original ids.

        Either every row lands and the entry is marked restored, or nothing
        changes at all.

        Raises:
            TrashEntryNotFoundError: No such entry
            AlreadyRestoredError: The entry was restored before
            RecordAlreadyExistsError: A live row already uses the original id
            RestoreConflictError: A re-inserted row violates a live constraint
        """
        entry = self.get_entry(entry_id)
        kind = entry.kind.value

        try:
            reconstructor = RECONSTRUCTORS.get(entry.kind)
            if reconstructor is None:
                raise UnsupportedKindError(kind)

            # Validates the state transition and stamps the entry
            restored_at = datetime.now()
            entry.mark_restored(restored_by, restored_at)

            if reconstructor.exists(self.session, entry.source_id):
                raise RecordAlreadyExistsError(kind, entry.source_id)

            if not self.trash_repo.claim_for_restore(
                entry.id, restored_by, restored_at
            ):
                raise AlreadyRestoredError(entry.id)

            rows = reconstructor.restore(
                self.session,
                entry.source_id,
                entry.snapshot,
                entry.related_snapshot,
            )
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            metrics.record_restore_failure(kind, type(e).__name__)
            log_database_operation(
                operation="restore",
                table="trash_entries",
                success=False,
                entry_id=entry_id,
                kind=kind,
                error=str(e),
            )
            log = logger.warning if isinstance(e, DomainError) else logger.error
            log(
                "Failed to restore trash entry",
                entry_id=entry_id,
                kind=kind,
                source_id=entry.source_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        metrics.record_restore(kind)
        log_user_action(
            "restore_trash_entry",
            restored_by,
            entry_id=entry_id,
            kind=kind,
            source_id=entry.source_id,
            rows=rows,
        )
        logger.info(
            "Trash entry restored",
            entry_id=entry_id,
            kind=kind,
            source_id=entry.source_id,
            rows_restored=rows,
        )
        return self.get_entry(entry_id)

    # Purge

    def purge(self, entry_id: str) -> None:
        """Permanently delete one entry, restored or not."""
        try:
            deleted = self.trash_repo.delete(entry_id)
            if deleted is None:
                raise TrashEntryNotFoundError(entry_id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        metrics.record_purge(1, "one")
        if not deleted.is_restored():
            metrics.record_pending_purged(deleted.kind.value)
        log_database_operation(
            operation="purge",
            table="trash_entries",
            success=True,
            entry_id=entry_id,
            kind=deleted.kind.value,
            was_restored=deleted.is_restored(),
        )
        logger.info(
            "Trash entry purged",
            entry_id=entry_id,
            kind=deleted.kind.value,
            source_id=deleted.source_id,
        )

    def purge_restored(self) -> int:
        """Delete every restored entry; entries awaiting restoration stay."""
        try:
            removed = self.trash_repo.delete_restored()
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        metrics.record_purge(removed, "restored")
        log_database_operation(
            operation="purge_restored",
            table="trash_entries",
            success=True,
            removed=removed,
        )
        logger.info("Restored trash entries purged", removed=removed)
        return removed
