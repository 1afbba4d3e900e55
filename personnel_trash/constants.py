"""Infrastructure and technical constants."""

from typing import Final

DEFAULT_PORT: Final = 8000
DEFAULT_DATABASE_URL: Final = "sqlite:///./personnel.db"
LOG_FILE_NAME: Final = "personnel_trash.log"
