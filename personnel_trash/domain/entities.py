"""Pure domain entities without infrastructure dependencies."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from math import ceil
from typing import Any

from .constants import MAX_REASON_LENGTH
from .exceptions import AlreadyRestoredError, InvalidSnapshotError


class TrashKind(str, Enum):
    """Kinds of top-level records that can be moved to the trash."""

    INSTRUCTOR = "INSTRUCTOR"
    CONTRACT = "CONTRACT"
    PASSPORT = "PASSPORT"
    VISA = "VISA"
    EXTENSION = "EXTENSION"

    @property
    def owns_children(self) -> bool:
        """Deep kinds carry a related snapshot of their owned sub-tree."""
        return self is TrashKind.INSTRUCTOR


class Sex(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class MaritalStatus(str, Enum):
    SINGLE = "SINGLE"
    MARRIED = "MARRIED"
    DIVORCED = "DIVORCED"
    WIDOWED = "WIDOWED"
    DOMESTIC_PARTNERSHIP = "DOMESTIC_PARTNERSHIP"


class EnglishLevel(str, Enum):
    BASIC = "BASIC"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    NATIVE = "NATIVE"


class CandidateStatus(str, Enum):
    ACTIVE = "ACTIVE"
    IN_PROGRESS = "IN_PROGRESS"
    HIRED = "HIRED"
    WITHDRAWN = "WITHDRAWN"
    SUSPENDED = "SUSPENDED"


class PassportType(str, Enum):
    ORDINARY = "ORDINARY"
    OFFICIAL = "OFFICIAL"
    DIPLOMATIC = "DIPLOMATIC"


class ContractStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXTENDED = "EXTENDED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (ContractStatus.CLOSED, ContractStatus.CANCELLED)


@dataclass
class TrashEntry:
    """A point-in-time capture of one deleted top-level record."""

    id: str
    kind: TrashKind
    source_id: str
    snapshot: dict[str, Any]
    deleted_by: str
    related_snapshot: dict[str, Any] | None = None
    deleted_by_name: str | None = None
    reason: str | None = None
    created_at: datetime | None = None
    restored_at: datetime | None = None
    restored_by: str | None = None

    def __post_init__(self):
        self.kind = TrashKind(self.kind)
        self.validate()

    def validate(self) -> None:
        """Validate the shape rules every entry must satisfy."""
        if not self.source_id:
            raise InvalidSnapshotError("Trash entry needs the id of the deleted record")

        if not self.deleted_by:
            raise InvalidSnapshotError("Trash entry needs the deleting user")

        if self.kind.owns_children and self.related_snapshot is None:
            raise InvalidSnapshotError(
                f"{self.kind.value} entries must carry a related snapshot"
            )
        if not self.kind.owns_children and self.related_snapshot is not None:
            raise InvalidSnapshotError(
                f"{self.kind.value} entries cannot carry a related snapshot"
            )

        if self.reason and len(self.reason) > MAX_REASON_LENGTH:
            raise InvalidSnapshotError(
                f"Reason cannot be longer than {MAX_REASON_LENGTH} characters"
            )

    def is_restored(self) -> bool:
        return self.restored_at is not None

    def mark_restored(self, user: str, when: datetime | None = None) -> None:
        """Record the restoration; an entry is restored at most once."""
        if self.is_restored():
            raise AlreadyRestoredError(self.id)
        self.restored_at = when or datetime.now()
        self.restored_by = user


@dataclass
class TrashPage:
    """One page of trash entries, newest first."""

    items: list[TrashEntry]
    total: int
    page: int
    limit: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        self.total_pages = ceil(self.total / self.limit) if self.limit else 0
