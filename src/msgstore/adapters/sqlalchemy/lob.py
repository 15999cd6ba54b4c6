"""SQLAlchemy adapter – large-object handlers for the message blob column."""
from __future__ import annotations

import abc
from typing import Any

from sqlalchemy import LargeBinary
from sqlalchemy.types import TypeEngine

from msgstore.kernel.errors import SerializationError


class LobHandler(abc.ABC):
    """Port: convert blob bytes to a bind value and a fetched column back to bytes."""

    #: SQLAlchemy type used when binding the encoded value.
    bind_type: TypeEngine[Any] = LargeBinary()

    @abc.abstractmethod
    def encode(self, data: bytes) -> Any: ...

    @abc.abstractmethod
    def decode(self, value: Any) -> bytes: ...


class DefaultLobHandler(LobHandler):
    """Binds plain ``bytes``; accepts the buffer types DBAPI drivers return.

    psycopg returns ``memoryview``, sqlite3 and PyMySQL return ``bytes``.
    """

    def encode(self, data: bytes) -> Any:
        return data

    def decode(self, value: Any) -> bytes:
        if isinstance(value, bytes):
            return value
        if isinstance(value, (memoryview, bytearray)):
            return bytes(value)
        raise SerializationError(
            f"Unsupported blob column value of type {type(value).__name__}",
            payload_type=type(value).__name__,
        )


class StreamingLobHandler(DefaultLobHandler):
    """Also reads driver LOB locators that expose ``read()`` (oracledb, for one)."""

    def decode(self, value: Any) -> bytes:
        read = getattr(value, "read", None)
        if callable(read):
            return super().decode(read())
        return super().decode(value)


__all__ = ["DefaultLobHandler", "LobHandler", "StreamingLobHandler"]
