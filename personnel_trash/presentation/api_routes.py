from datetime import datetime
from typing import Annotated, Any, Final

from fastapi import APIRouter, Depends, Header, Path, Query, Response, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from ..application.deletion_service import DeletionService
from ..application.trash_service import TrashService
from ..domain.constants import MAX_NAME_LENGTH, MAX_REASON_LENGTH
from ..domain.entities import TrashEntry, TrashKind
from ..infrastructure.database.database import get_session

api_router: Final = APIRouter(
    prefix="/api/v1",
    responses={
        400: {"description": "Bad Request - Operation not allowed in this state"},
        404: {"description": "Not Found - Resource does not exist"},
        409: {"description": "Conflict - Constraint violated by live data"},
        422: {"description": "Validation Error - Request validation failed"},
    },
)


# Response Models
class TrashEntryResponse(BaseModel):
    """A trash entry with the snapshots it holds."""

    id: str = Field(description="Unique trash entry identifier")
    kind: TrashKind = Field(description="Kind of the deleted record")
    source_id: str = Field(description="Id the record had while it was live")
    snapshot: dict[str, Any] = Field(description="Full copy of the deleted record")
    related_snapshot: dict[str, Any] | None = Field(
        description="Records owned by the deleted record (instructors only)"
    )
    deleted_by: str = Field(description="User who deleted the record")
    deleted_by_name: str | None = Field(description="Display name of that user")
    reason: str | None = Field(description="Why the record was deleted")
    created_at: datetime = Field(description="When the record was moved to trash")
    restored_at: datetime | None = Field(description="When the entry was restored")
    restored_by: str | None = Field(description="User who restored the entry")

    @classmethod
    def from_entry(cls, entry: TrashEntry) -> "TrashEntryResponse":
        return cls(
            id=entry.id,
            kind=entry.kind,
            source_id=entry.source_id,
            snapshot=entry.snapshot,
            related_snapshot=entry.related_snapshot,
            deleted_by=entry.deleted_by,
            deleted_by_name=entry.deleted_by_name,
            reason=entry.reason,
            created_at=entry.created_at,
            restored_at=entry.restored_at,
            restored_by=entry.restored_by,
        )


class PageMeta(BaseModel):
    total: int = Field(description="Entries matching the filter")
    page: int = Field(description="Current page, starting at 1")
    limit: int = Field(description="Entries per page")
    total_pages: int = Field(description="Number of pages")


class TrashPageResponse(BaseModel):
    """One page of trash entries, newest first."""

    items: list[TrashEntryResponse]
    meta: PageMeta


class PurgeResponse(BaseModel):
    removed: int = Field(description="Number of trash entries deleted")


class HealthResponse(BaseModel):
    status: str
    app: str
    version: str


# Trash inspection


@api_router.get(
    "/trash",
    response_model=TrashPageResponse,
    tags=["trash"],
    summary="List trash entries",
    description="""
    List trash entries, newest first.

    Only entries still awaiting restoration are returned unless
    `include_restored=true` is passed. Filter by record kind with `kind`.
    """,
)
async def api_list_trash(
    *,
    session: Session = Depends(get_session),
    kind: TrashKind | None = Query(None, description="Only entries of this kind"),
    page: int = Query(1, description="Page number, starting at 1"),
    limit: int | None = Query(None, description="Entries per page"),
    include_restored: bool = Query(False, description="Include restored entries"),
) -> TrashPageResponse:
    result = TrashService(session).list_entries(
        kind=kind, page=page, limit=limit, include_restored=include_restored
    )
    return TrashPageResponse(
        items=[TrashEntryResponse.from_entry(e) for e in result.items],
        meta=PageMeta(
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=result.total_pages,
        ),
    )


@api_router.get(
    "/trash/{entry_id}",
    response_model=TrashEntryResponse,
    tags=["trash"],
    summary="Get a trash entry",
)
async def api_get_trash_entry(
    *,
    session: Session = Depends(get_session),
    entry_id: str = Path(description="Trash entry id"),
) -> TrashEntryResponse:
    return TrashEntryResponse.from_entry(TrashService(session).get_entry(entry_id))


# Restore and purge


@api_router.post(
    "/users/{user}/trash/{entry_id}/restore",
    response_model=TrashEntryResponse,
    tags=["trash", "users"],
    summary="Restore a trash entry",
    description="""
    Re-create the deleted record under its original id. Restoring an
    instructor also re-creates its passports, visas, contracts and extensions.

    **Exactly once**: a restored entry cannot be restored again.
    **All or nothing**: if any row conflicts with live data, nothing is restored.
    """,
    responses={
        400: {"description": "Already restored, or the record already exists"},
        409: {"description": "A restored row violates a live constraint"},
    },
)
async def api_restore_trash_entry(
    *,
    session: Session = Depends(get_session),
    user: str = Path(description="User restoring the entry"),
    entry_id: str = Path(description="Trash entry id"),
) -> TrashEntryResponse:
    entry = TrashService(session).restore(entry_id, restored_by=user)
    return TrashEntryResponse.from_entry(entry)


@api_router.delete(
    "/trash/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["trash"],
    summary="Permanently delete a trash entry",
)
async def api_purge_trash_entry(
    *,
    session: Session = Depends(get_session),
    entry_id: str = Path(description="Trash entry id"),
) -> Response:
    TrashService(session).purge(entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@api_router.post(
    "/trash/purge",
    response_model=PurgeResponse,
    tags=["trash"],
    summary="Delete all restored entries",
    description="Entries still awaiting restoration are never touched.",
)
async def api_purge_restored(
    *, session: Session = Depends(get_session)
) -> PurgeResponse:
    return PurgeResponse(removed=TrashService(session).purge_restored())


# Deletion into trash

ActingUser = Annotated[str, Path(description="User deleting the record")]
DeleteReason = Annotated[
    str | None,
    Query(max_length=MAX_REASON_LENGTH, description="Why the record is deleted"),
]
DisplayName = Annotated[
    str | None,
    Header(
        alias="X-User-Name",
        max_length=MAX_NAME_LENGTH,
        description="Display name of the deleting user",
    ),
]


@api_router.delete(
    "/users/{user}/instructors/{record_id}",
    response_model=TrashEntryResponse,
    tags=["users"],
    summary="Delete an instructor into trash",
    description="""
    Move an instructor and everything it owns (passports with their visas,
    contracts with their extensions) to the trash.

    Blocked while the instructor has an active or extended contract.
    """,
)
async def api_delete_instructor(
    *,
    session: Session = Depends(get_session),
    user: ActingUser,
    record_id: str = Path(description="Instructor id"),
    reason: DeleteReason = None,
    x_user_name: DisplayName = None,
) -> TrashEntryResponse:
    entry = DeletionService(session).delete_instructor(
        record_id, user, deleted_by_name=x_user_name, reason=reason
    )
    return TrashEntryResponse.from_entry(entry)


@api_router.delete(
    "/users/{user}/passports/{record_id}",
    response_model=TrashEntryResponse,
    tags=["users"],
    summary="Delete a passport into trash",
    description="Blocked while the passport still has visas.",
)
async def api_delete_passport(
    *,
    session: Session = Depends(get_session),
    user: ActingUser,
    record_id: str = Path(description="Passport id"),
    reason: DeleteReason = None,
    x_user_name: DisplayName = None,
) -> TrashEntryResponse:
    entry = DeletionService(session).delete_passport(
        record_id, user, deleted_by_name=x_user_name, reason=reason
    )
    return TrashEntryResponse.from_entry(entry)


@api_router.delete(
    "/users/{user}/visas/{record_id}",
    response_model=TrashEntryResponse,
    tags=["users"],
    summary="Delete a visa into trash",
)
async def api_delete_visa(
    *,
    session: Session = Depends(get_session),
    user: ActingUser,
    record_id: str = Path(description="Visa id"),
    reason: DeleteReason = None,
    x_user_name: DisplayName = None,
) -> TrashEntryResponse:
    entry = DeletionService(session).delete_visa(
        record_id, user, deleted_by_name=x_user_name, reason=reason
    )
    return TrashEntryResponse.from_entry(entry)


@api_router.delete(
    "/users/{user}/contracts/{record_id}",
    response_model=TrashEntryResponse,
    tags=["users"],
    summary="Delete a contract into trash",
    description="Blocked while the contract still has extensions.",
)
async def api_delete_contract(
    *,
    session: Session = Depends(get_session),
    user: ActingUser,
    record_id: str = Path(description="Contract id"),
    reason: DeleteReason = None,
    x_user_name: DisplayName = None,
) -> TrashEntryResponse:
    entry = DeletionService(session).delete_contract(
        record_id, user, deleted_by_name=x_user_name, reason=reason
    )
    return TrashEntryResponse.from_entry(entry)


@api_router.delete(
    "/users/{user}/extensions/{record_id}",
    response_model=TrashEntryResponse,
    tags=["users"],
    summary="Delete a contract extension into trash",
    description="""
    Only the last extension of a contract can be deleted, and never one of a
    closed contract. The contract's end date falls back to the previous
    extension, or to its original end date.
    """,
)
async def api_delete_extension(
    *,
    session: Session = Depends(get_session),
    user: ActingUser,
    record_id: str = Path(description="Extension id"),
    reason: DeleteReason = None,
    x_user_name: DisplayName = None,
) -> TrashEntryResponse:
    entry = DeletionService(session).delete_extension(
        record_id, user, deleted_by_name=x_user_name, reason=reason
    )
    return TrashEntryResponse.from_entry(entry)
