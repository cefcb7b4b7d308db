"""
Lazy, once-only connection to the backing store.

``Connector`` owns the single client handle an accessor uses.  The first
``get_client()`` call builds the client and performs the handshake (``PING``);
later calls return the memoized handle.  A failed attempt memoizes nothing, so
the connector is re-armed and the next call tries again.

Manifesto:
    The handle is an owned field, not module state.  Two accessors pointing at
    two stores never share a connection, and re-arming lives here instead of
    being repeated at every call site.

    - **Once:** concurrent first callers block on a lock; one attempt runs
    - **Shared outcome:** callers that waited on an attempt see its result,
      success or failure
    - **Re-arm:** failures are never memoized; ``reset()`` and
      ``invalidate()`` drop a handle explicitly

Examples:
    >>> connector = Connector(CacheConfig(host="cache.internal"))
    >>> client = connector.get_client()   # connects + PING
    >>> connector.get_client() is client
    True

Tags:
    connection, lazy-init, thread-safety, redis, valkey
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import redis

from valkey_cache.errors import CacheConnectionError
from valkey_cache.logging import get_logger
from valkey_cache.settings import CacheConfig

logger = get_logger(__name__)

ClientFactory = Callable[[CacheConfig], Any]


def default_client_factory(config: CacheConfig) -> redis.Redis:
    """Build a ``redis.Redis`` client for *config* (no I/O yet)."""
    return redis.Redis(
        host=config.host,
        port=config.port,
        db=config.db,
        username=config.username,
        password=config.password,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_connect_timeout,
        decode_responses=False,
    )


class Connector:
    """Provides a connected client, establishing the link at most once.

    Args:
        config: Endpoint and client options.
        client_factory: Builds an unconnected client from *config*. Defaults to
            :func:`default_client_factory`.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        client_factory: ClientFactory | None = None,
    ):
        self._config = config or CacheConfig()
        self._client_factory = client_factory or default_client_factory
        self._lock = threading.Lock()
        self._client: Any = None
        self._last_error: CacheConnectionError | None = None
        self._generation = 0
        self.attempts = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def connected(self) -> bool:
        """True once a handle is memoized."""
        return self._client is not None

    def get_client(self) -> Any:
        """Return the memoized client, connecting on first use.

        Raises:
            CacheConnectionError: The connect attempt failed. The connector is
                re-armed; the next call makes a new attempt.
        """
        client = self._client
        if client is not None:
            return client

        generation = self._generation
        with self._lock:
            if self._client is not None:
                return self._client
            # Another caller finished an attempt while we waited: share its failure.
            if self._generation != generation and self._last_error is not None:
                raise self._last_error

            try:
                client = self._connect()
            except CacheConnectionError as exc:
                self._last_error = exc
                raise
            else:
                self._last_error = None
                self._client = client
            finally:
                self._generation += 1
            return client

    def _connect(self) -> Any:
        self.attempts += 1
        address = self._config.address
        try:
            client = self._client_factory(self._config)
            client.ping()
        except redis.RedisError as exc:
            logger.warning(
                "valkey_connect_failed",
                address=address,
                attempt=self.attempts,
                error=str(exc),
            )
            raise CacheConnectionError(
                f"Failed to connect to {address}: {exc}", cause=exc
            ).with_context(
                operation="connect", host=self._config.host, port=self._config.port
            ) from exc
        logger.info("valkey_connected", address=address, attempt=self.attempts)
        return client

    def reset(self) -> None:
        """Drop the memoized handle so the next call reconnects."""
        with self._lock:
            self._client = None
            self._last_error = None

    def invalidate(self, client: Any) -> bool:
        """Re-arm only if *client* is still the memoized handle.

        Returns:
            True if the handle was dropped.
        """
        with self._lock:
            if self._client is not client or client is None:
                return False
            self._client = None
            logger.info("valkey_connection_invalidated", address=self._config.address)
            return True

    def close(self) -> None:
        """Close and drop the memoized handle, if any."""
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            client.close()


__all__ = ["Connector", "ClientFactory", "default_client_factory"]
