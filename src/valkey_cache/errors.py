"""
Structured error types for the cache-aside accessor.

Every failure the accessor can surface is a :class:`CacheError` subclass that
carries a category, a retryable flag, structured context (key, operation,
endpoint) and the chained library exception that caused it.  Callers branch on
the class; log pipelines consume :meth:`CacheError.to_dict`.

Manifesto:
    A cache that hides its failures corrupts data quietly.  The accessor
    therefore keeps three outcomes strictly apart:

    - **Miss:** the key is absent.  Expected, drives compute-and-store,
      never reported as a failure (:class:`CacheMiss`).
    - **Infrastructure failure:** the store is unreachable or rejected a
      command (:class:`CacheConnectionError`, :class:`StoreError`).
    - **Data failure:** bytes could not be encoded or decoded
      (:class:`SerializationError`, :class:`DeserializationError`).

    Exceptions raised by caller-supplied producers are *not* wrapped; they
    reach the caller exactly as raised.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                       CacheError                          │
        │        (category, retryable, context, cause)              │
        ├──────────────────────────────────────────────────────────┤
        │  CacheMiss           CacheConnectionError   StoreError    │
        │  (MISS)              (CONNECTION, retry)    (STORE)       │
        │                                                           │
        │  ConfigError         CodecError                           │
        │  (CONFIG)            (CODEC)                              │
        │                        │                                  │
        │                 SerializationError                        │
        │                 DeserializationError                      │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> err = StoreError("WRONGTYPE").with_context(key="user:42", operation="get")
    >>> err.to_dict()["context"]
    {'key': 'user:42', 'operation': 'get'}
    >>> is_retryable(CacheConnectionError("refused"))
    True

Tags:
    error-handling, exception-hierarchy, cache, valkey, redis

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONNECTION = "CONNECTION"
    MISS = "MISS"
    STORE = "STORE"
    CODEC = "CODEC"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a :class:`CacheError`.

    Only fields that were set are emitted by :meth:`to_dict`, so the context
    can be splatted straight into a structured log call.

    Attributes:
        key: Cache key the failing operation targeted
        operation: Store command or codec step (``get``, ``set``, ``expire``,
            ``serialize``, ``deserialize``, ``connect``)
        host: Backing store host
        port: Backing store port
        metadata: Additional key-value pairs
    """

    key: str | None = None
    operation: str | None = None
    host: str | None = None
    port: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for name in ["key", "operation", "host", "port"]:
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class CacheError(Exception):
    """
    Base exception for all accessor errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can be
    overridden per instance.

    Examples:
        >>> error = CacheError("boom")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        Chaining a library exception:

        >>> try:
        ...     raise OSError("connection reset")
        ... except OSError as e:
        ...     error = CacheError("store failed", cause=e)
        >>> error.__cause__
        OSError('connection reset')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CacheError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StoreError("rejected").with_context(key=key, operation="set")
        """
        for name, value in kwargs.items():
            if hasattr(self.context, name) and name != "metadata":
                setattr(self.context, name, value)
            else:
                self.context.metadata[name] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# LOOKUP OUTCOMES
# =============================================================================


class CacheMiss(CacheError):
    """
    The key is absent from the store.

    Not a failure: :class:`~valkey_cache.aside.CacheAside` catches it and runs
    the compute-and-store branch.  Direct users of
    :class:`~valkey_cache.raw.RawCache` branch on it explicitly.
    """

    default_category = ErrorCategory.MISS

    def __init__(self, key: str, **kwargs: Any):
        super().__init__(f"Key not found: {key}", **kwargs)
        self.key = key
        self.context.key = key
        self.context.operation = "get"


# =============================================================================
# INFRASTRUCTURE ERRORS
# =============================================================================


class CacheConnectionError(CacheError):
    """Connecting to the backing store failed.

    Retryable: the connector re-arms itself, so the next call makes a fresh
    attempt.
    """

    default_category = ErrorCategory.CONNECTION
    default_retryable = True


class StoreError(CacheError):
    """The backing store rejected a well-formed command."""

    default_category = ErrorCategory.STORE


class ConfigError(CacheError):
    """Invalid accessor configuration."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# CODEC ERRORS
# =============================================================================


class CodecError(CacheError):
    """Base for encode/decode failures."""

    default_category = ErrorCategory.CODEC


class SerializationError(CodecError):
    """A value could not be encoded; nothing was written to the store."""


class DeserializationError(CodecError):
    """Stored bytes do not decode into the expected type."""


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, CacheError):
        return error.retryable
    return isinstance(error, (ConnectionError, TimeoutError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, CacheError):
        return error.category
    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.CONNECTION
    if isinstance(error, (TypeError, ValueError)):
        return ErrorCategory.CODEC
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "CacheError",
    "CacheMiss",
    "CacheConnectionError",
    "StoreError",
    "ConfigError",
    "CodecError",
    "SerializationError",
    "DeserializationError",
    "is_retryable",
    "categorize_error",
]
