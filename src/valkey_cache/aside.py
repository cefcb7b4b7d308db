"""
Cache-aside orchestration: get, or compute and store, then return.

``CacheAside`` binds a :class:`~valkey_cache.raw.RawCache` to a
:class:`~valkey_cache.codec.Codec` for one value type and runs the
get-or-compute protocol for any key and any zero-argument producer.

Manifesto:
    The orchestrator never hides a failure behind a recomputation.

    - **Bypass first:** with caching disabled the producer runs directly and
      neither the cache nor the codec is touched
    - **Miss → compute → store:** producer exceptions propagate untouched;
      an unencodable value is never written; a failed write surfaces
    - **Store errors surface:** a broken store is reported, not masked by
      calling the producer, which may be expensive or non-idempotent
    - **Corrupt hits surface:** undecodable bytes raise
      ``DeserializationError`` instead of silently recomputing

    Concurrent misses on the same key both compute and both store; the last
    ``SET`` wins.  There is no compare-and-swap.

State machine (one pass per call, no retries)::

    START ─┬─ use_cache false ──► COMPUTE_ONLY ──────────────────────► DONE
           └─ LOOKUP ─┬─ HIT ──► DESERIALIZE ────────────────────────► DONE
                      ├─ MISS ─► COMPUTE ─► SERIALIZE ─► STORE ──────► DONE
                      └─ LOOKUP_ERROR ───────────────────────────────► DONE(error)

Examples:
    >>> aside = CacheAside(create_cache(CacheConfig(use_cache=True)), JsonCodec(User))
    >>> aside.get_or_compute("user:42", lambda: load_user(42))   # miss: computes + stores
    User(id=42, name='Ada')
    >>> aside.get_or_compute("user:42", lambda: load_user(42))   # hit: no producer call
    User(id=42, name='Ada')

Design note:
    When the producer succeeds but the ``SET`` fails, the computed value is
    discarded and the store error is raised.  Returning the value alongside a
    warning is a reasonable alternative; it is deliberately not done here.

Tags:
    cache-aside, orchestration, generics, valkey
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from valkey_cache.codec import Codec
from valkey_cache.errors import CacheError, CacheMiss, ConfigError
from valkey_cache.logging import LogContext, get_logger
from valkey_cache.raw import RawCache

logger = get_logger(__name__)

T = TypeVar("T")

Producer = Callable[[], T]


class CacheAside(Generic[T]):
    """Get-or-compute-and-store over a raw cache and a codec.

    Args:
        cache: Byte-level cache; its ``use_cache`` flag decides bypass.
        codec: Codec for ``T``. Each orchestrator owns its codec, so several
            value types and encodings can share one cache.
        ttl_seconds: TTL for values this orchestrator writes (``None`` → no TTL).
    """

    def __init__(
        self,
        cache: RawCache,
        codec: Codec[T],
        *,
        ttl_seconds: int | None = None,
    ):
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ConfigError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.cache = cache
        self.codec = codec
        self.ttl_seconds = ttl_seconds

    def get_or_compute(self, key: str, producer: Producer[T]) -> T:
        """Return the cached value for *key*, computing and storing it on a miss.

        Raises:
            CacheConnectionError: Store unreachable (producer not called).
            StoreError: Store rejected the lookup or the write.
            SerializationError: Computed value could not be encoded (nothing stored).
            DeserializationError: Stored bytes do not decode into ``T``.
            Exception: Whatever *producer* raised, unchanged.
        """
        if not self.cache.use_cache:
            logger.debug("cache_disabled", key=key)
            return producer()

        try:
            data = self.cache.get(key)
        except CacheMiss:
            logger.debug("cache_miss", key=key)
            return self.set_and_compute(key, producer)
        except CacheError as exc:
            logger.error("cache_lookup_failed", **exc.with_context(key=key).to_dict())
            raise

        try:
            value = self.codec.deserialize(data)
        except CacheError as exc:
            logger.error("cache_decode_failed", **exc.with_context(key=key).to_dict())
            raise
        logger.debug("cache_hit", key=key)
        return value

    def set_and_compute(self, key: str, producer: Producer[T]) -> T:
        """Run *producer*, store its encoded result under *key*, and return it.

        No lookup is made; use this for unconditional refresh.  Error rules are
        those of the miss branch of :meth:`get_or_compute`.  While the producer
        runs, ``cache_key`` is bound in the structlog context, so its own log
        lines carry the key.
        """
        with LogContext(cache_key=key):
            value = producer()

        try:
            data = self.codec.serialize(value)
        except CacheError as exc:
            logger.error("cache_encode_failed", **exc.with_context(key=key).to_dict())
            raise

        try:
            self.cache.set(key, data, ttl_seconds=self.ttl_seconds)
        except CacheError as exc:
            logger.error("cache_store_failed", **exc.with_context(key=key).to_dict())
            raise
        logger.debug("cache_stored", key=key, size=len(data))
        return value

    def invalidate(self, key: str) -> None:
        """Expire *key* so the next lookup is a miss."""
        self.cache.expire(key)
        logger.debug("cache_invalidated", key=key)

    def cached(self, key_fn: Callable[..., str]) -> Callable[[Callable[..., T]], Callable[..., T]]:
        """Decorator running the wrapped function through :meth:`get_or_compute`.

        Example:
            @users.cached(lambda user_id: f"user:{user_id}")
            def load_user(user_id: int) -> User:
                ...
        """

        def decorator(func: Callable[..., T]) -> Callable[..., T]:
            @functools.wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> T:
                return self.get_or_compute(
                    key_fn(*args, **kwargs), lambda: func(*args, **kwargs)
                )

            wrapper.cache_aside = self  # type: ignore[attr-defined]
            return wrapper

        return decorator


def get_or_set_and_get(
    cache: RawCache,
    key: str,
    producer: Producer[T],
    codec: Codec[T],
) -> T:
    """One-shot :meth:`CacheAside.get_or_compute`.

    *codec* is required so a hit decodes into the same type a miss returns;
    pass ``JsonCodec(Any)`` explicitly for untyped JSON documents.
    """
    return CacheAside(cache, codec).get_or_compute(key, producer)


def set_and_get(
    cache: RawCache,
    key: str,
    producer: Producer[T],
    codec: Codec[T],
) -> T:
    """One-shot :meth:`CacheAside.set_and_compute`."""
    return CacheAside(cache, codec).set_and_compute(key, producer)


__all__ = ["CacheAside", "Producer", "get_or_set_and_get", "set_and_get"]
