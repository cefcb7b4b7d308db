"""
Accessor configuration.

``CacheConfig`` holds the endpoint of the backing store and the switch that
turns caching on.  It is a pydantic-settings model, so every field can come from
``VALKEY_CACHE_*`` environment variables or a ``.env`` file, and it is frozen:
once an accessor is built its configuration cannot drift.

Features:
    - **Defaults:** ``localhost:6739``, caching disabled
    - **Normalization:** empty host / zero port fall back to the defaults
    - **Immutability:** assignment after construction raises
    - **Client options:** db index, credentials, socket timeouts

Examples:
    >>> from valkey_cache.settings import CacheConfig
    >>> CacheConfig().address
    'localhost:6739'
    >>> CacheConfig(host="", port=0, use_cache=True).address
    'localhost:6739'

Tags:
    settings, configuration, pydantic, environment, valkey

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from valkey_cache.errors import ConfigError

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6739


class CacheConfig(BaseSettings):
    """Configuration for a single cache accessor.

    Fields
    ──────
    host                    : Backing store host
    port                    : Backing store port
    use_cache               : When false, every lookup goes straight to the producer
    db                      : Logical database index
    username / password     : Optional AUTH credentials
    socket_timeout          : Per-command timeout in seconds (client enforced)
    socket_connect_timeout  : Connect timeout in seconds (client enforced)
    default_ttl_seconds     : TTL applied to values written by the orchestrator
    log_level / log_format  : structlog configuration
    """

    model_config = SettingsConfigDict(
        env_prefix="VALKEY_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ── Endpoint ─────────────────────────────────────────────────
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    db: int = Field(default=0, ge=0)
    username: str | None = None
    password: str | None = None

    # ── Behaviour ────────────────────────────────────────────────
    use_cache: bool = False
    default_ttl_seconds: int | None = Field(default=None, gt=0)

    # ── Client timeouts ──────────────────────────────────────────
    socket_timeout: float | None = Field(default=None, gt=0)
    socket_connect_timeout: float | None = Field(default=None, gt=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("host", mode="before")
    @classmethod
    def _default_host(cls, value: str | None) -> str:
        return value or DEFAULT_HOST

    @field_validator("port", mode="before")
    @classmethod
    def _default_port(cls, value: int | str | None) -> int | str:
        if value in (None, "", 0, "0"):
            return DEFAULT_PORT
        return value

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def address(self) -> str:
        """``host:port`` of the backing store."""
        return f"{self.host}:{self.port}"


def load_config(**overrides: Any) -> CacheConfig:
    """Build a :class:`CacheConfig` from the environment plus *overrides*.

    Raises:
        ConfigError: A value failed validation.
    """
    try:
        return CacheConfig(**overrides)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ConfigError(f"Invalid cache configuration: {fields}", cause=exc).with_context(
            fields=fields
        ) from exc


__all__ = ["CacheConfig", "DEFAULT_HOST", "DEFAULT_PORT", "load_config"]
