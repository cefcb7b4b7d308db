"""valkey-cache -- cache-aside accessor for Valkey / Redis.

Manifesto:
    Fetch by key; on a miss, compute via the caller's producer, store, and
    return.  The accessor connects lazily and at most once, keeps "not found"
    apart from "failed", and round-trips typed values through an explicit
    codec.

Architecture::

    settings.py     CacheConfig (pydantic-settings, frozen)
    errors.py       CacheError hierarchy (CacheMiss, CacheConnectionError, ...)
    logging.py      structlog configuration
    connector.py    Connector: once-only connect with re-arm on failure
    raw.py          RawCache protocol + ValkeyRawCache (GET/SET/EXPIRE)
    codec.py        Codec protocol + JsonCodec[T] / BytesCodec
    aside.py        CacheAside[T]: get_or_compute / set_and_compute
    factory.py      create_cache / create_cache_aside

Examples:
    >>> from valkey_cache import CacheConfig, create_cache_aside
    >>> users = create_cache_aside(User, CacheConfig(use_cache=True))
    >>> users.get_or_compute("user:42", lambda: load_user(42))
"""

from valkey_cache.aside import CacheAside, get_or_set_and_get, set_and_get
from valkey_cache.codec import BytesCodec, Codec, JsonCodec
from valkey_cache.connector import Connector
from valkey_cache.errors import (
    CacheConnectionError,
    CacheError,
    CacheMiss,
    CodecError,
    ConfigError,
    DeserializationError,
    ErrorCategory,
    ErrorContext,
    SerializationError,
    StoreError,
)
from valkey_cache.factory import create_cache, create_cache_aside
from valkey_cache.raw import RawCache, ValkeyRawCache
from valkey_cache.settings import CacheConfig, load_config

__version__ = "0.1.0"

__all__ = [
    "BytesCodec",
    "CacheAside",
    "CacheConfig",
    "CacheConnectionError",
    "CacheError",
    "CacheMiss",
    "Codec",
    "CodecError",
    "ConfigError",
    "Connector",
    "DeserializationError",
    "ErrorCategory",
    "ErrorContext",
    "JsonCodec",
    "RawCache",
    "SerializationError",
    "StoreError",
    "ValkeyRawCache",
    "create_cache",
    "create_cache_aside",
    "get_or_set_and_get",
    "load_config",
    "set_and_get",
]
