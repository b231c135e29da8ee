"""Configuration management for the library lending engine.

Lending policy constants (loan period, loan cap) and the storage location
are read from the environment with the ``LIBRARY_LENDING_`` prefix, so the
same engine can run with different policies per deployment:

1. Policy - loan period and maximum simultaneous loans
2. Storage - SQLite database location for the SQLAlchemy adapter
3. Diagnostics - log level and debug switch
"""

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LendingConfig(BaseSettings):
    """Lending engine configuration.

    Values come from (highest priority first) constructor arguments,
    ``LIBRARY_LENDING_*`` environment variables, then a local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        # Use LIBRARY_LENDING_ prefix for all env vars
        env_prefix="LIBRARY_LENDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Lending Policy ===

    loan_days: int = Field(
        default=14,
        description="Length of a loan in days, counted from the day it is granted",
        ge=1,
        le=365,
    )

    max_loans: int = Field(
        default=5,
        description="Maximum number of books a member may hold at the same time",
        ge=1,
        le=100,
    )

    enforce_limit_on_borrow: bool = Field(
        default=True,
        description="Apply max_loans to direct borrows, not only to reservation hand-off",
    )

    conflict_retries: int = Field(
        default=3,
        description="Times an operation is retried after losing a write race to another session",
        ge=0,
        le=10,
    )

    # === Database Configuration ===

    database_path: Path = Field(
        default=Path("data/library.db"),
        description="SQLite database file path",
    )

    # === Development Configuration ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, v: Path) -> Path:
        """Make the database path absolute; the directory is created on first use."""
        abs_path = v.absolute()

        if abs_path.is_dir():
            raise ValueError(f"Database path {abs_path} is a directory")

        return abs_path

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.log_level == "DEBUG"

    def get_database_url(self) -> str:
        """Get SQLAlchemy database URL."""
        return f"sqlite:///{self.database_path}"


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: LendingConfig | None = None


def get_config() -> LendingConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = LendingConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]


def configure_logging(config: LendingConfig | None = None) -> None:
    """Apply the configured log level to the package logger."""
    config = config or get_config()
    level = logging.DEBUG if config.debug else getattr(logging, config.log_level)
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("library_lending").setLevel(level)
