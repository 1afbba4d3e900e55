"""Database model for the recycle bin.

Each row is a point-in-time capture of one deleted top-level record and,
for instructors, of everything the instructor owned.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, Index, text
from sqlmodel import Field, SQLModel

from ...domain.entities import TrashEntry, TrashKind
from .models import new_id

_PENDING = text("restored_at IS NULL")


class TrashEntryRecord(SQLModel, table=True):  # type: ignore[call-arg]
    """Persistent storage for deleted records that can be restored."""

    __tablename__: str = "trash_entries"  # type: ignore[assignment]
    __table_args__ = (
        # A record can only wait in the trash once at a time
        Index(
            "uq_trash_pending_source",
            "kind",
            "source_id",
            unique=True,
            sqlite_where=_PENDING,
            postgresql_where=_PENDING,
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True)

    kind: TrashKind = Field(index=True)
    source_id: str = Field(index=True)
    snapshot: dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))
    related_snapshot: dict[str, Any] | None = Field(
        default=None, sa_column=Column(JSON(none_as_null=True), nullable=True)
    )

    # Deletion metadata
    deleted_by: str
    deleted_by_name: str | None = None
    reason: str | None = None
    created_at: datetime = Field(default_factory=datetime.now, index=True)

    # Set exactly once, by restore
    restored_at: datetime | None = Field(default=None, index=True)
    restored_by: str | None = None

    @classmethod
    def from_domain(cls, entry: TrashEntry) -> "TrashEntryRecord":
        """Convert domain entity to persistence model."""
        record = cls(
            id=entry.id,
            kind=entry.kind,
            source_id=entry.source_id,
            snapshot=entry.snapshot,
            related_snapshot=entry.related_snapshot,
            deleted_by=entry.deleted_by,
            deleted_by_name=entry.deleted_by_name,
            reason=entry.reason,
            restored_at=entry.restored_at,
            restored_by=entry.restored_by,
        )
        if entry.created_at is not None:
            record.created_at = entry.created_at
        return record

    def to_domain(self) -> TrashEntry:
        """Convert persistence model to domain entity."""
        return TrashEntry(
            id=self.id,
            kind=self.kind,
            source_id=self.source_id,
            snapshot=self.snapshot,
            related_snapshot=self.related_snapshot,
            deleted_by=self.deleted_by,
            deleted_by_name=self.deleted_by_name,
            reason=self.reason,
            created_at=self.created_at,
            restored_at=self.restored_at,
            restored_by=self.restored_by,
        )
