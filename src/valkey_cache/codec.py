"""
Codecs between typed values and stored bytes.

A codec is bound to one value type.  ``JsonCodec`` is the default: it writes
field-named JSON (so entries stay readable with ``valkey-cli GET``) and
validates on the way back through a pydantic ``TypeAdapter``, which means a
stored payload that no longer fits the expected type raises
:class:`~valkey_cache.errors.DeserializationError` instead of leaking a
half-built object.

Supported shapes for ``JsonCodec``: anything pydantic can validate and dump,
including dataclasses, pydantic models, ``TypedDict`` and builtin containers.

Examples:
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class User:
    ...     id: int
    ...     name: str
    >>> codec = JsonCodec(User)
    >>> codec.serialize(User(42, "Ada"))
    b'{"id":42,"name":"Ada"}'
    >>> codec.deserialize(b'{"id":42,"name":"Ada"}')
    User(id=42, name='Ada')

Tags:
    serialization, json, pydantic, codec
"""

from __future__ import annotations

from typing import Any, Generic, Protocol, TypeVar

from pydantic import ConfigDict, PydanticUserError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from valkey_cache.errors import DeserializationError, SerializationError

T = TypeVar("T")

_JSON_CONFIG = ConfigDict(ser_json_inf_nan="constants")


class Codec(Protocol[T]):
    """Converts between a typed value and bytes."""

    def serialize(self, value: T) -> bytes:
        """Encode *value*; raises ``SerializationError``."""
        ...

    def deserialize(self, data: bytes) -> T:
        """Decode *data*; raises ``DeserializationError``."""
        ...


class JsonCodec(Generic[T]):
    """JSON codec validated against *type_*.

    Encoding is checked in both directions: a value that does not match
    *type_* is refused, and the encoded bytes must decode back into *type_*
    before they are handed to the store.  Non-finite floats are written as
    ``Infinity`` / ``NaN`` constants; models and dataclasses carry their own
    pydantic config and need ``ser_json_inf_nan="constants"`` there, otherwise
    such values are refused with ``SerializationError``.

    Args:
        type_: The value type. ``Any`` accepts any JSON document.
        strict: Disable pydantic's lax coercion (``"42"`` will not become ``42``).
    """

    def __init__(self, type_: Any = Any, *, strict: bool = False):
        self.type_ = type_
        self.strict = strict
        try:
            self._adapter: TypeAdapter[T] = TypeAdapter(type_, config=_JSON_CONFIG)
        except PydanticUserError:
            # BaseModel, dataclass and TypedDict types bring their own config.
            self._adapter = TypeAdapter(type_)

    def serialize(self, value: T) -> bytes:
        try:
            data = self._adapter.dump_json(value, warnings="error")
        except (PydanticSerializationError, TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot encode {type(value).__name__} as {self._type_name()}: {exc}", cause=exc
            ).with_context(operation="serialize") from exc

        try:
            self._adapter.validate_json(data, strict=self.strict)
        except ValidationError as exc:
            raise SerializationError(
                f"Encoded {type(value).__name__} does not decode back into {self._type_name()}: "
                f"{exc.error_count()} validation error(s)",
                cause=exc,
            ).with_context(operation="serialize") from exc
        return data

    def deserialize(self, data: bytes) -> T:
        try:
            return self._adapter.validate_json(data, strict=self.strict)
        except ValidationError as exc:
            raise DeserializationError(
                f"Stored bytes do not decode into {self._type_name()}: "
                f"{exc.error_count()} validation error(s)",
                cause=exc,
            ).with_context(operation="deserialize") from exc

    def _type_name(self) -> str:
        return getattr(self.type_, "__name__", repr(self.type_))

    def __repr__(self) -> str:
        return f"JsonCodec({self._type_name()})"


class BytesCodec:
    """Pass-through codec for callers that already hold bytes."""

    def serialize(self, value: bytes) -> bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise SerializationError(
                f"BytesCodec expects bytes, got {type(value).__name__}"
            ).with_context(operation="serialize")
        return bytes(value)

    def deserialize(self, data: bytes) -> bytes:
        return bytes(data)


__all__ = ["Codec", "JsonCodec", "BytesCodec"]
