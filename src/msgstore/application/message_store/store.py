"""Message store – MessageStore port, row mapping helpers and InMemoryMessageStore."""

from __future__ import annotations

import abc
import dataclasses
import threading
from typing import Any, Sequence

from msgstore.application.message_store.correlation import correlation_key, ensure_digest_available
from msgstore.application.message_store.incrementer import InMemoryIncrementer, Incrementer
from msgstore.kernel.errors import OptimisticLockConflictError, SerializationError
from msgstore.kernel.messaging import (
    ID_HEADER,
    VERSION_HEADER,
    Envelope,
    MessageId,
    PickleSerializer,
    Serializer,
)
from msgstore.kernel.types import Nothing, Option, Some
from msgstore.observability.logging import get_logger

logger = get_logger(__name__)


class _AllMessages:
    """Sentinel type: ``list()`` called without a correlation token."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "ALL_MESSAGES"


ALL_MESSAGES: Any = _AllMessages()


def envelope_to_blob(envelope: Envelope[Any], serializer: Serializer) -> bytes:
    """Serialize *envelope* as a plain ``{"payload", "headers"}`` record."""
    return serializer.serialize({"payload": envelope.payload, "headers": dict(envelope.headers)})


def blob_to_envelope(
    data: bytes,
    message_id: MessageId,
    version: int,
    serializer: Serializer,
) -> Envelope[Any]:
    """Rebuild an envelope from a stored blob; id/version come from the columns."""
    record = serializer.deserialize(data)
    if not isinstance(record, dict) or "payload" not in record:
        raise SerializationError(
            f"Stored message id={message_id} is not an envelope record",
            payload_type=type(record).__name__,
        )
    headers = dict(record.get("headers") or {})
    headers[ID_HEADER] = message_id
    headers[VERSION_HEADER] = version
    return Envelope(record["payload"], headers)


def expected_version(envelope: Envelope[Any]) -> int:
    """Version carried by *envelope*; ``0`` when the header is absent."""
    version = envelope.headers.get(VERSION_HEADER)
    return 0 if version is None else int(version)


class MessageStore(abc.ABC):
    """Port — durable CRUD over envelopes with optimistic locking.

    ``put`` inserts envelopes that carry no :data:`ID_HEADER` (version 0)
    and treats every other envelope as a version-guarded update, raising
    :class:`~msgstore.kernel.errors.OptimisticLockConflictError` when the
    stored version moved on. Lookups return :class:`Some` / :class:`Nothing`
    instead of ``None``.

    When ``report_committed_version`` is true (the default) the envelope
    returned from a successful update carries the new committed version.
    When false it carries the version that was submitted, one behind the
    stored record.
    """

    def __init__(
        self,
        serializer: Serializer | None = None,
        report_committed_version: bool = True,
    ) -> None:
        ensure_digest_available()
        self._serializer = serializer or PickleSerializer()
        self._report_committed_version = report_committed_version

    @property
    def serializer(self) -> Serializer:
        return self._serializer

    def correlation_key(self, token: Any) -> str | None:
        return correlation_key(token, self._serializer)

    def _updated_envelope(self, envelope: Envelope[Any], message_id: MessageId, version: int) -> Envelope[Any]:
        reported = version + 1 if self._report_committed_version else version
        return envelope.with_headers({ID_HEADER: message_id, VERSION_HEADER: reported})

    @abc.abstractmethod
    def put(self, envelope: Envelope[Any]) -> Envelope[Any]:
        """Insert a new envelope or apply a version-guarded update."""

    @abc.abstractmethod
    def get(self, message_id: MessageId) -> Option[Envelope[Any]]:
        """Return the stored envelope for *message_id*."""

    @abc.abstractmethod
    def delete(self, message_id: MessageId) -> Option[Envelope[Any]]:
        """Remove *message_id* and return the envelope that was removed."""

    @abc.abstractmethod
    def list(self, correlation_id: Any = ALL_MESSAGES) -> Sequence[Envelope[Any]]:
        """Return every envelope, or those sharing *correlation_id*'s key."""


@dataclasses.dataclass
class _Row:
    correlation_key: str | None
    payload: bytes
    version: int


class InMemoryMessageStore(MessageStore):
    """In-memory :class:`MessageStore` for tests and local development.

    Applies the same serialization round-trip and version protocol as the
    relational store, guarded by a single lock.
    """

    def __init__(
        self,
        incrementer: Incrementer | None = None,
        serializer: Serializer | None = None,
        report_committed_version: bool = True,
    ) -> None:
        super().__init__(serializer, report_committed_version)
        self._incrementer = incrementer or InMemoryIncrementer()
        # message id → row
        self._rows: dict[MessageId, _Row] = {}
        self._lock = threading.Lock()

    def put(self, envelope: Envelope[Any]) -> Envelope[Any]:
        version = expected_version(envelope)
        key = self.correlation_key(envelope.correlation_id)

        if envelope.has_id:
            message_id: MessageId = envelope.headers[ID_HEADER]
            blob = envelope_to_blob(envelope, self._serializer)
            with self._lock:
                row = self._rows.get(message_id)
                if row is None or row.version != version:
                    conflict = OptimisticLockConflictError(
                        message_id, version, None if row is None else row.version
                    )
                    logger.warning("optimistic_lock_conflict", **conflict.log_fields())
                    raise conflict
                self._rows[message_id] = _Row(key, blob, version + 1)
            logger.debug("message_updated", message_id=message_id, version=version + 1)
            return self._updated_envelope(envelope, message_id, version)

        message_id = self._incrementer.next_value()
        stored = envelope.with_headers({ID_HEADER: message_id, VERSION_HEADER: 0})
        blob = envelope_to_blob(stored, self._serializer)
        with self._lock:
            self._rows[message_id] = _Row(key, blob, 0)
        logger.debug("message_inserted", message_id=message_id, correlation_key=key)
        return stored

    def get(self, message_id: MessageId) -> Option[Envelope[Any]]:
        with self._lock:
            row = self._rows.get(message_id)
        if row is None:
            return Nothing()
        return Some(blob_to_envelope(row.payload, message_id, row.version, self._serializer))

    def delete(self, message_id: MessageId) -> Option[Envelope[Any]]:
        found = self.get(message_id)
        if found.is_none():
            return found
        with self._lock:
            removed = self._rows.pop(message_id, None)
        if removed is None:
            return Nothing()
        logger.debug("message_deleted", message_id=message_id)
        return found

    def list(self, correlation_id: Any = ALL_MESSAGES) -> Sequence[Envelope[Any]]:
        with self._lock:
            rows = list(self._rows.items())
        if correlation_id is not ALL_MESSAGES:
            key = self.correlation_key(correlation_id)
            rows = [(i, r) for i, r in rows if key is not None and r.correlation_key == key]
        return [blob_to_envelope(r.payload, i, r.version, self._serializer) for i, r in rows]


__all__ = [
    "ALL_MESSAGES",
    "InMemoryMessageStore",
    "MessageStore",
    "blob_to_envelope",
    "envelope_to_blob",
    "expected_version",
]
