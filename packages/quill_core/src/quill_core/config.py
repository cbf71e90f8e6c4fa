"""
Foundation settings for the Quill packages.
"""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class QuillSettings(BaseSettings):
    """
    Core settings shared by every Quill package.
    Applications can inherit from this to add their own keys.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # --- Basic Environment ---
    DEBUG: bool = True
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    APP_TITLE: str = "Quill API"

    # --- Pagination ---
    # Fallback used by resources that do not declare their own policy
    DEFAULT_ITEMS_PER_PAGE: int = 30
    MAX_ITEMS_PER_PAGE: int = 100

    # --- Database Core ---
    DATABASE_URL: str = "sqlite+aiosqlite:///quill.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    # --- Feature Flags ---
    ENABLE_REQUEST_ID: bool = True

    @model_validator(mode="after")
    def validate_pagination(self) -> "QuillSettings":
        """Ensures the default page size fits under the ceiling."""
        if self.DEFAULT_ITEMS_PER_PAGE < 1:
            raise ValueError("DEFAULT_ITEMS_PER_PAGE must be at least 1.")
        if self.DEFAULT_ITEMS_PER_PAGE > self.MAX_ITEMS_PER_PAGE:
            raise ValueError(
                "DEFAULT_ITEMS_PER_PAGE cannot exceed MAX_ITEMS_PER_PAGE."
            )
        return self

    def is_development(self) -> bool:
        return self.DEBUG or self.ENVIRONMENT == "development"


# Singleton instance for core use
quill_settings = QuillSettings()
