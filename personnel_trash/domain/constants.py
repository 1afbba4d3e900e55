"""Domain business rules and constants."""

from typing import Final

MAX_NAME_LENGTH: Final = 100
MAX_CI_LENGTH: Final = 11
MAX_DOCUMENT_NUMBER_LENGTH: Final = 30
MAX_REASON_LENGTH: Final = 500

DEFAULT_INSTRUCTOR_DELETE_REASON: Final = "Deleted from instructor list"
DEFAULT_PASSPORT_DELETE_REASON: Final = "Deleted from passport list"
DEFAULT_VISA_DELETE_REASON: Final = "Deleted from visa list"
DEFAULT_CONTRACT_DELETE_REASON: Final = "Deleted from contract list"
DEFAULT_EXTENSION_DELETE_REASON: Final = "Deleted from contract extensions"
