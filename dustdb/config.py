"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - Every setting is read from a DUST_* environment variable (or .env)
    - Settings are built once by an entry point and passed down explicitly;
      request handling never reads the environment
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - Env names keep the DUST_DB_* / DUST_DATA_* spelling used by deployed nodes,
      mapped onto Python attribute names with validation_alias
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server and storage settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DUST_", env_file=".env", case_sensitive=False,
        extra="ignore", populate_by_name=True,
    )

    # Listener
    host: str = Field(
        default="127.0.0.1",
        validation_alias="DUST_DB_ADDR",
    )
    port: int = Field(
        default=7878, ge=0, le=65535,
        validation_alias="DUST_DB_PORT",
    )
    max_connections: int = Field(default=256, ge=1)
    max_line_bytes: int = Field(default=1_048_576, ge=1)

    # Storage
    storage_root: Path = Field(
        default=Path("./data"),
        validation_alias="DUST_DATA_STORAGE_PATH",
    )
    data_format: str = Field(
        default="json",
        validation_alias="DUST_DATA_FMT",
    )

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("data_format")
    @classmethod
    def normalize_data_format(cls, v: str) -> str:
        """Record files are named <id>.<data_format>; strip a leading dot."""
        v = v.strip().lstrip(".")
        if not v:
            raise ValueError("data_format must not be empty")
        if "/" in v or "\\" in v:
            raise ValueError(f"data_format must not contain a path separator: {v!r}")
        return v

    @field_validator("storage_root")
    @classmethod
    def expand_storage_root(cls, v: Path) -> Path:
        return v.expanduser()

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
