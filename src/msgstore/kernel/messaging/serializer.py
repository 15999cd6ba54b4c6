"""Kernel messaging – Serializer port and the two built-in codecs."""
from __future__ import annotations

import abc
import json
import pickle
from typing import Any

from msgstore.kernel.errors import SerializationError


class Serializer(abc.ABC):
    """Port: turn envelope records and correlation tokens into bytes and back.

    Implementations must be deterministic: equal inputs produce equal bytes in
    every process, because correlation keys are digests of these bytes.
    """

    @abc.abstractmethod
    def serialize(self, obj: Any) -> bytes: ...

    @abc.abstractmethod
    def deserialize(self, data: bytes) -> Any: ...


class PickleSerializer(Serializer):
    """Binary serializer for arbitrary picklable Python objects.

    The protocol is pinned so a token pickled by one interpreter hashes to the
    same correlation key as the same token pickled by another. Only read blobs
    written by a trusted store: unpickling runs code.
    """

    def __init__(self, protocol: int = 4) -> None:
        self._protocol = protocol

    @property
    def protocol(self) -> int:
        return self._protocol

    def serialize(self, obj: Any) -> bytes:
        try:
            return pickle.dumps(obj, protocol=self._protocol)
        except (pickle.PicklingError, TypeError, AttributeError, RecursionError) as exc:
            raise SerializationError(
                f"Cannot serialize object of type {type(obj).__name__}",
                payload_type=type(obj).__name__,
                cause=exc,
            ) from exc

    def deserialize(self, data: bytes) -> Any:
        try:
            return pickle.loads(data)  # noqa: S301
        except (pickle.UnpicklingError, EOFError, TypeError, AttributeError, ImportError, ValueError) as exc:
            raise SerializationError(
                f"Cannot deserialize {len(data)} bytes",
                payload_type="bytes",
                cause=exc,
            ) from exc


class JsonSerializer(Serializer):
    """Canonical JSON serializer (sorted keys, compact separators, UTF-8).

    Restricted to JSON-compatible payloads and header values; tuples come back
    as lists.
    """

    def serialize(self, obj: Any) -> bytes:
        try:
            return json.dumps(
                obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False
            ).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as exc:
            raise SerializationError(
                f"Cannot serialize object of type {type(obj).__name__} as JSON",
                payload_type=type(obj).__name__,
                cause=exc,
            ) from exc

    def deserialize(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except (UnicodeDecodeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot decode {len(data)} bytes as JSON",
                payload_type="bytes",
                cause=exc,
            ) from exc


__all__ = ["JsonSerializer", "PickleSerializer", "Serializer"]
