"""
Factory functions that build accessors from configuration.

``create_cache`` is the entry point hosts use; it accepts ``None`` for an
all-defaults configuration and never opens a connection by itself.
"""

from __future__ import annotations

from typing import Any, TypeVar

from valkey_cache.aside import CacheAside
from valkey_cache.codec import Codec, JsonCodec
from valkey_cache.connector import ClientFactory, Connector
from valkey_cache.errors import ConfigError
from valkey_cache.raw import ValkeyRawCache
from valkey_cache.settings import CacheConfig

T = TypeVar("T")


def create_cache(
    config: CacheConfig | None = None,
    *,
    client_factory: ClientFactory | None = None,
) -> ValkeyRawCache:
    """Create a :class:`ValkeyRawCache` for *config* (defaults if ``None``)."""
    connector = Connector(config or CacheConfig(), client_factory=client_factory)
    return ValkeyRawCache(connector=connector)


def create_cache_aside(
    value_type: Any,
    config: CacheConfig | None = None,
    *,
    codec: Codec[T] | None = None,
    cache: ValkeyRawCache | None = None,
) -> CacheAside[T]:
    """Create a :class:`CacheAside` for *value_type*.

    Pass *cache* to share one connection between orchestrators of different
    value types; the TTL then comes from that cache's own configuration.
    Otherwise a cache is built from *config* and ``config.default_ttl_seconds``
    applies.

    Raises:
        ConfigError: Both *config* and *cache* were given.
    """
    if cache is not None and config is not None:
        raise ConfigError(
            "Pass either config or cache to create_cache_aside, not both"
        ).with_context(operation="create_cache_aside")
    cache = cache or create_cache(config)
    return CacheAside(
        cache,
        codec or JsonCodec(value_type),
        ttl_seconds=cache.config.default_ttl_seconds,
    )


__all__ = ["create_cache", "create_cache_aside"]
