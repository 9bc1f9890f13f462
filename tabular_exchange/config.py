"""
Application settings.

Values are read from environment variables with the ``TABX_`` prefix or
from a ``.env`` file, e.g. ``TABX_LOG_LEVEL=DEBUG`` or
``TABX_REPORT_COLUMN_SEPARATOR="|"``.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the tabular-exchange service."""

    app_name: str = "Tabular Exchange Service"
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO", description="Root logging level")

    text_encoding: str = Field(
        default="utf-8",
        description="Encoding used to read and write CSV/TSV text",
    )
    sheet_name: str = Field(
        default="Sheet1",
        description="Name of the single sheet written by the workbook encoders",
    )

    rss_language: str = Field(default="ko", description="RSS channel <language>")
    rss_strip_description_newlines: bool = Field(
        default=False,
        description="Remove line breaks from item descriptions before wrapping in CDATA",
    )

    report_column_separator: str = Field(default="##")
    report_line_separator: str = Field(default="\n")

    model_config = SettingsConfigDict(
        env_prefix="TABX_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
