"""Snapshot schemas for trash entries.

A snapshot is stored as a JSON document. Its shape is fixed per ``TrashKind``;
decoding always switches on the kind first and validates the payload against
that kind's schema, never guessing the shape from the payload itself.
"""

from datetime import datetime
from typing import Any

from pydantic import ValidationError
from sqlmodel import Field, SQLModel

from ...domain.entities import TrashKind
from ...domain.exceptions import InvalidSnapshotError, UnsupportedKindError
from .models import (
    Contract,
    ContractBase,
    ExtensionBase,
    Instructor,
    InstructorBase,
    PassportBase,
    VisaBase,
)

# Relation attributes an instructor snapshot may carry for display purposes.
# They are not columns and are never written back.
INSTRUCTOR_RELATION_FIELDS = frozenset(
    {
        "province",
        "municipality",
        "position",
        "specialty",
        "teaching_category",
        "birth_country",
        "passports",
        "contracts",
    }
)


class VisaSnapshot(VisaBase):
    id: str
    created_at: datetime
    updated_at: datetime


class PassportSnapshot(PassportBase):
    id: str
    created_at: datetime
    updated_at: datetime
    visas: list[VisaSnapshot] = Field(default_factory=list)


class ExtensionSnapshot(ExtensionBase):
    id: str
    created_at: datetime
    updated_at: datetime


class ContractSnapshot(ContractBase):
    id: str
    created_at: datetime
    updated_at: datetime
    extensions: list[ExtensionSnapshot] = Field(default_factory=list)


class InstructorSnapshot(InstructorBase):
    id: str
    created_at: datetime
    updated_at: datetime


class InstructorRelatedSnapshot(SQLModel):
    """The sub-tree an instructor owned when it was deleted."""

    passports: list[PassportSnapshot] = Field(default_factory=list)
    contracts: list[ContractSnapshot] = Field(default_factory=list)


SNAPSHOT_SCHEMAS: dict[TrashKind, type[SQLModel]] = {
    TrashKind.INSTRUCTOR: InstructorSnapshot,
    TrashKind.PASSPORT: PassportSnapshot,
    TrashKind.VISA: VisaSnapshot,
    TrashKind.CONTRACT: ContractSnapshot,
    TrashKind.EXTENSION: ExtensionSnapshot,
}


def decode_snapshot(kind: TrashKind, data: dict[str, Any]) -> Any:
    """Validate ``data`` against the snapshot schema of ``kind``.

    Raises:
        UnsupportedKindError: No schema is registered for ``kind``
        InvalidSnapshotError: The payload does not match the schema
    """
    schema = SNAPSHOT_SCHEMAS.get(kind)
    if schema is None:
        raise UnsupportedKindError(str(kind))
    if kind is TrashKind.INSTRUCTOR:
        data = strip_instructor_relations(data)
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise InvalidSnapshotError(
            f"Invalid {kind.value.lower()} snapshot: {e.error_count()} field error(s)"
        ) from e


def decode_instructor_tree(
    data: dict[str, Any] | None,
) -> InstructorRelatedSnapshot:
    """Decode the sub-tree an instructor owned; a missing tree is empty."""
    try:
        return InstructorRelatedSnapshot.model_validate(data or {})
    except ValidationError as e:
        raise InvalidSnapshotError(
            "Invalid related snapshot for instructor: "
            f"{e.error_count()} field error(s)"
        ) from e


def decode_related_snapshot(
    kind: TrashKind, data: dict[str, Any] | None
) -> InstructorRelatedSnapshot | None:
    if kind.owns_children:
        return decode_instructor_tree(data)
    if data is not None:
        raise InvalidSnapshotError(
            f"{kind.value} snapshots cannot carry related records"
        )
    return None


def strip_instructor_relations(data: dict[str, Any]) -> dict[str, Any]:
    """Drop nested relation objects, keeping only scalar columns."""
    return {k: v for k, v in data.items() if k not in INSTRUCTOR_RELATION_FIELDS}


def encode_row(row: SQLModel) -> dict[str, Any]:
    """Field-complete JSON copy of a live row (columns only)."""
    return row.model_dump(mode="json")


def encode_contract(contract: Contract) -> dict[str, Any]:
    return {
        **encode_row(contract),
        "extensions": [encode_row(e) for e in contract.extensions],
    }


def encode_instructor(
    instructor: Instructor,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Snapshot an instructor and the sub-tree it owns.

    The instructor snapshot also embeds its lookup records (province,
    position, ...) so the trash can be browsed without joins.

    Returns:
        (snapshot, related_snapshot)
    """
    snapshot = encode_row(instructor)
    for relation in (
        "province",
        "municipality",
        "position",
        "specialty",
        "teaching_category",
        "birth_country",
    ):
        value = getattr(instructor, relation)
        snapshot[relation] = encode_row(value) if value is not None else None

    related = {
        "passports": [
            {**encode_row(p), "visas": [encode_row(v) for v in p.visas]}
            for p in instructor.passports
        ],
        "contracts": [encode_contract(c) for c in instructor.contracts],
    }
    return snapshot, related
