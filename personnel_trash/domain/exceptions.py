"""Domain-specific exceptions.

Three families map onto the HTTP status the presentation layer reports:
NotFoundError (404), ConflictError (409) and BadRequestError (400).
"""


class DomainError(Exception):
    """Base exception for domain errors."""

    pass


class NotFoundError(DomainError):
    """Raised when a trash entry or live record does not exist."""

    resource_type = "resource"


class ConflictError(DomainError):
    """Raised when an operation would break a uniqueness invariant."""

    resource_type = "resource"
    conflicting_field: str | None = None


class BadRequestError(DomainError):
    """Raised when an operation is not allowed in the current state."""

    pass


class TrashEntryNotFoundError(NotFoundError):
    resource_type = "trash_entry"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Trash entry '{entry_id}' not found")


class RecordNotFoundError(NotFoundError):
    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        self.resource_type = kind.lower()
        super().__init__(f"{kind.title()} '{record_id}' not found")


class AlreadyInTrashError(ConflictError):
    """Raised when a record already has an entry awaiting restoration."""

    resource_type = "trash_entry"
    conflicting_field = "source_id"

    def __init__(self, kind: str, source_id: str):
        self.kind = kind
        self.source_id = source_id
        super().__init__(f"{kind.title()} '{source_id}' is already in trash")


class RestoreConflictError(ConflictError):
    """Raised when re-inserting a snapshot violates a live constraint."""

    def __init__(self, kind: str, source_id: str, detail: str):
        self.kind = kind
        self.source_id = source_id
        self.resource_type = kind.lower()
        super().__init__(
            f"Cannot restore {kind.lower()} '{source_id}': {detail}"
        )


class AlreadyRestoredError(BadRequestError):
    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Trash entry '{entry_id}' has already been restored")


class RecordAlreadyExistsError(BadRequestError):
    """Raised when the live table already holds the id being restored."""

    def __init__(self, kind: str, source_id: str):
        self.kind = kind
        self.source_id = source_id
        super().__init__(f"{kind.title()} '{source_id}' record already exists")


class UnsupportedKindError(BadRequestError):
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Trash kind '{kind}' is not supported for restoration")


class InvalidSnapshotError(BadRequestError):
    """Raised when a snapshot does not match the schema of its kind."""

    pass


class InstructorHasActiveContractsError(BadRequestError):
    def __init__(self, instructor_id: str):
        self.instructor_id = instructor_id
        super().__init__(
            f"Instructor '{instructor_id}' cannot be deleted while it has "
            "active contracts"
        )


class HasDependentRecordsError(BadRequestError):
    def __init__(self, kind: str, record_id: str, dependents: str):
        self.kind = kind
        self.record_id = record_id
        self.dependents = dependents
        super().__init__(
            f"{kind.title()} '{record_id}' cannot be deleted while it has {dependents}"
        )


class ExtensionNotLastError(BadRequestError):
    pass
