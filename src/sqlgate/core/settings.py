"""Gateway settings.

Configuration is explicit, validated and environment-driven. Every field
can be set through a ``SQLGATE_``-prefixed environment variable or a
``.env`` file.

Examples:
    >>> from sqlgate.core.settings import GatewaySettings
    >>> s = GatewaySettings(database_url="sqlite:///gate.db")
    >>> s.resolved_dialect_name
    'sqlite'

Tags:
    settings, configuration, pydantic, environment, sqlgate
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqlgate.core.dialect import dialect_for_url, get_dialect

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class GatewaySettings(BaseSettings):
    """Settings for building a ready-to-use executor.

    Fields
    ──────
    database_url : URL, path or ``memory`` for the borrowed connection
    dialect      : Explicit dialect name; guessed from the URL when empty
    offline      : Generate SQL only; never open a real connection
    log_level    : Structlog log level
    json_logs    : JSON renderer (True), console (False), auto (None)
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connection ───────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///:memory:",
        description="Database URL, file path, or 'memory'",
    )
    dialect: str | None = None
    offline: bool = False

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return upper

    @field_validator("dialect")
    @classmethod
    def _check_dialect(cls, value: str | None) -> str | None:
        if value:
            get_dialect(value)
            return value.lower()
        return None

    @property
    def resolved_dialect_name(self) -> str:
        if self.dialect:
            return get_dialect(self.dialect).name
        return dialect_for_url(self.database_url).name


__all__ = ["GatewaySettings"]
