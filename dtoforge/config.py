"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting can be overridden with a DTOFORGE_-prefixed environment variable
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all settings: the library works without any configuration
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DTOFORGE_", env_file=".env", case_sensitive=False, extra="ignore",
    )

    # Introspection
    # Bound on sub-schema nesting; cyclic schemas fail instead of overflowing
    max_schema_depth: int = 32

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("max_schema_depth")
    @classmethod
    def check_depth_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_schema_depth must be >= 1")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
