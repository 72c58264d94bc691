from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the entry expiration tool.

    Values are loaded from environment variables and `.env`.

    Notes:
    - EE_DB_BACKEND picks the record store (SQLITE, POSTGRES or MYSQL).
    - The entries table is EE_TABLE_PREFIX + EE_ENTRIES_TABLE, matching the
      WordPress `$wpdb->prefix` convention (wp_wpforms_entries by default).
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    EE_DB_BACKEND: str = Field(default="SQLITE")
    EE_DB_PATH: Path = Field(default=Path("data/entries.db"))
    EE_POSTGRES_DSN: str | None = Field(default=None)
    EE_MYSQL_HOST: str = Field(default="localhost")
    EE_MYSQL_PORT: int = Field(default=3306)
    EE_MYSQL_USER: str = Field(default="root")
    EE_MYSQL_PASSWORD: str = Field(default="")
    EE_MYSQL_DATABASE: str | None = Field(default=None)

    # Entries table
    EE_TABLE_PREFIX: str = Field(default="wp_")
    EE_ENTRIES_TABLE: str = Field(default="wpforms_entries")
    EE_DATE_COLUMN: str = Field(default="date")

    # Diagnostic logging (console output goes through the reporter)
    EE_LOG_DIR: Path = Field(default=Path("_logs"))
    EE_LOG_LEVEL: str = Field(default="INFO")
    # Timed rotation retention count (days). Old log files are auto-deleted.
    EE_LOG_BACKUP_COUNT: int = Field(default=14)

    @property
    def entries_table(self) -> str:
        return f"{self.EE_TABLE_PREFIX or ''}{self.EE_ENTRIES_TABLE}"

    @property
    def backend(self) -> str:
        return str(self.EE_DB_BACKEND or "SQLITE").strip().upper()


def load_settings() -> Settings:
    s = Settings()
    if s.backend == "SQLITE":
        # Ensure parent dir exists
        s.EE_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    return s
