from typing import Final

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_DATABASE_URL, DEFAULT_PORT


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env files."""

    # Server configuration
    debug: bool = Field(default=True, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Server port")

    # Database configuration
    database_url: str = Field(
        default=DEFAULT_DATABASE_URL, description="Database connection URL"
    )

    # Application configuration
    app_name: str = Field(default="Personnel Trash", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")

    # Recycle bin paging
    trash_page_size: int = Field(
        default=10, ge=1, description="Default page size when listing the trash"
    )
    trash_max_page_size: int = Field(
        default=100, ge=1, description="Largest page size a caller may request"
    )

    # Logging configuration
    log_level: str | None = Field(
        default=None, description="Override log level (DEBUG, INFO, WARNING, ...)"
    )
    log_to_file: bool = Field(
        default=False, description="Force logging to file even in debug mode"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str | None:
        """Normalize the log level name and reject unknown ones."""
        if v is None:
            return v
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("trash_max_page_size")
    @classmethod
    def validate_max_page_size(cls, v: int, info) -> int:
        default_size = info.data.get("trash_page_size")
        if default_size is not None and v < default_size:
            raise ValueError("trash_max_page_size must not be below trash_page_size")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


# Global settings instance
settings: Final = Settings()
