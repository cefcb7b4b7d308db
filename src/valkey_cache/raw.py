"""
Byte-level cache operations against the backing store.

``RawCache`` is the contract the orchestrator depends on; ``ValkeyRawCache``
implements it on top of a :class:`~valkey_cache.connector.Connector`.

Manifesto:
    A lookup has three outcomes and callers must be able to tell them apart:

    - bytes found → returned
    - key absent  → :class:`~valkey_cache.errors.CacheMiss`
    - anything else → :class:`~valkey_cache.errors.CacheConnectionError`
      or :class:`~valkey_cache.errors.StoreError`

    ``expire`` sets a zero TTL (``EXPIRE key 0``) and ``delete`` issues ``DEL``.
    Both make the key unavailable, but keyspace notifications and command stats
    see them differently, so they stay separate operations.

Architecture:
    ::

        RawCache (Protocol)
        └── ValkeyRawCache
              └── Connector.get_client() → redis.Redis
                    GET / SET [EX] / EXPIRE key 0 / DEL / PING

Tags:
    cache, redis, valkey, bytes, protocol
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

import redis

from valkey_cache.connector import Connector
from valkey_cache.errors import CacheConnectionError, CacheMiss, StoreError
from valkey_cache.logging import get_logger
from valkey_cache.settings import CacheConfig

logger = get_logger(__name__)

R = TypeVar("R")


class RawCache(Protocol):
    """Protocol for byte-oriented cache backends."""

    @property
    def use_cache(self) -> bool:
        """Whether the orchestrator should consult this cache at all."""
        ...

    def get(self, key: str) -> bytes:
        """Return stored bytes; raise ``CacheMiss`` if the key is absent."""
        ...

    def set(self, key: str, value: bytes, *, ttl_seconds: int | None = None) -> None:
        """Store *value* unconditionally."""
        ...

    def expire(self, key: str) -> None:
        """Set the key's TTL to zero."""
        ...


class ValkeyRawCache:
    """Valkey/Redis-backed :class:`RawCache`.

    Args:
        config: Accessor configuration. Ignored when *connector* is given.
        connector: Pre-built connector (tests, shared factories).

    Example:
        cache = ValkeyRawCache(CacheConfig(host="cache.internal", use_cache=True))
        cache.set("greeting", b"hello")
        cache.get("greeting")   # b"hello"
        cache.expire("greeting")
        cache.get("greeting")   # raises CacheMiss
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        connector: Connector | None = None,
    ):
        self._connector = connector or Connector(config)
        self._config = self._connector.config

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def connector(self) -> Connector:
        return self._connector

    @property
    def use_cache(self) -> bool:
        return self._config.use_cache

    def get(self, key: str) -> bytes:
        value = self._execute("get", key, lambda client: client.get(key))
        if value is None:
            raise CacheMiss(key)
        return value

    def set(self, key: str, value: bytes, *, ttl_seconds: int | None = None) -> None:
        """Store *value*; a *ttl_seconds* of ``None`` stores without expiry.

        Any other TTL, zero included, is sent as ``EX`` and validated by the server.
        """
        if ttl_seconds is not None:
            self._execute("set", key, lambda client: client.set(key, value, ex=ttl_seconds))
        else:
            self._execute("set", key, lambda client: client.set(key, value))

    def expire(self, key: str) -> None:
        self._execute("expire", key, lambda client: client.expire(key, 0))

    def delete(self, key: str) -> None:
        """Remove *key* with ``DEL``. No-op if it does not exist."""
        self._execute("delete", key, lambda client: client.delete(key))

    def ping(self) -> bool:
        """Round-trip ``PING``; connects on first use."""
        return bool(self._execute("ping", None, lambda client: client.ping()))

    def close(self) -> None:
        self._connector.close()

    def _execute(self, operation: str, key: str | None, command: Callable[[Any], R]) -> R:
        client = self._connector.get_client()
        try:
            return command(client)
        except (redis.ConnectionError, redis.TimeoutError) as exc:
            self._connector.invalidate(client)
            logger.warning("valkey_command_failed", operation=operation, key=key, error=str(exc))
            raise CacheConnectionError(
                f"Lost connection to {self._config.address} during {operation}: {exc}",
                cause=exc,
            ).with_context(
                key=key, operation=operation, host=self._config.host, port=self._config.port
            ) from exc
        except redis.RedisError as exc:
            logger.warning("valkey_command_failed", operation=operation, key=key, error=str(exc))
            raise StoreError(
                f"{operation.upper()} rejected by {self._config.address}: {exc}", cause=exc
            ).with_context(
                key=key, operation=operation, host=self._config.host, port=self._config.port
            ) from exc


__all__ = ["RawCache", "ValkeyRawCache"]
