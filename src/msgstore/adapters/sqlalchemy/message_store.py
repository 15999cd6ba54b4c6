"""SQLAlchemy adapter – SqlAlchemyMessageStore."""
from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import Connection, Row, TextClause, bindparam, text

from msgstore.adapters.sqlalchemy import queries
from msgstore.adapters.sqlalchemy.lob import DefaultLobHandler, LobHandler
from msgstore.adapters.sqlalchemy.session import Bind, connection_scope
from msgstore.application.message_store.incrementer import Incrementer
from msgstore.application.message_store.store import (
    ALL_MESSAGES,
    MessageStore,
    blob_to_envelope,
    envelope_to_blob,
    expected_version,
)
from msgstore.config.validation import ConfigError
from msgstore.kernel.errors import IntegrityViolationError, OptimisticLockConflictError
from msgstore.kernel.messaging import ID_HEADER, VERSION_HEADER, Envelope, MessageId, Serializer
from msgstore.kernel.types import Nothing, Option, Some
from msgstore.observability.logging import get_logger

logger = get_logger(__name__)


class SqlAlchemyMessageStore(MessageStore):
    """Relational :class:`MessageStore` built on SQLAlchemy Core.

    One table holds every message::

        <prefix>message(message_id BIGINT PK, correlation_key CHAR(32) NULL,
                        message_bytes BLOB, version INT)

    Surrogate ids come from the injected :class:`Incrementer`; blobs pass
    through the :class:`LobHandler`. No in-process locking is done: a
    concurrent update is detected by the ``WHERE version = :version`` guard
    of the update statement, so the backend's row-level atomicity is the only
    synchronisation.

    Parameters
    ----------
    bind:
        An :class:`~sqlalchemy.Engine` (one pooled connection and one
        transaction per call) or a caller-owned
        :class:`~sqlalchemy.Connection` (statements join the caller's
        transaction, which the store never commits).
    incrementer:
        Surrogate-key generator.
    table_prefix:
        Prepended to every table name, default ``"INT_"``.
    lob_handler:
        Blob encoder/decoder, default :class:`DefaultLobHandler`.
    serializer:
        Codec for envelope blobs and correlation tokens.
    report_committed_version:
        See :class:`~msgstore.application.message_store.MessageStore`.
    """

    def __init__(
        self,
        bind: Bind | None,
        incrementer: Incrementer | None,
        *,
        table_prefix: str = queries.DEFAULT_TABLE_PREFIX,
        lob_handler: LobHandler | None = None,
        serializer: Serializer | None = None,
        report_committed_version: bool = True,
    ) -> None:
        if bind is None:
            raise ConfigError("An Engine or Connection must be provided")
        if incrementer is None:
            raise ConfigError("An Incrementer must be provided")
        super().__init__(serializer, report_committed_version)
        self._bind = bind
        self._incrementer = incrementer
        self._table_prefix = table_prefix
        self._lob_handler = lob_handler or DefaultLobHandler()

    @property
    def table_prefix(self) -> str:
        return self._table_prefix

    def get_query(self, template: str) -> str:
        """Render a statement template; override to customise SQL per dialect."""
        return queries.render_query(template, self._table_prefix)

    def _statement(self, template: str) -> TextClause:
        stmt = text(self.get_query(template))
        if ":message_bytes" in template:
            stmt = stmt.bindparams(bindparam("message_bytes", type_=self._lob_handler.bind_type))
        return stmt

    # ------------------------------------------------------------------
    # MessageStore interface
    # ------------------------------------------------------------------

    def put(self, envelope: Envelope[Any]) -> Envelope[Any]:
        version = expected_version(envelope)
        key = self.correlation_key(envelope.correlation_id)

        if envelope.has_id:
            message_id: MessageId = int(envelope.headers[ID_HEADER])
            blob = envelope_to_blob(envelope, self.serializer)
            self._update(message_id, version, key, blob)
            return self._updated_envelope(envelope, message_id, version)

        message_id = self._incrementer.next_value()
        stored = envelope.with_headers({ID_HEADER: message_id, VERSION_HEADER: 0})
        blob = envelope_to_blob(stored, self.serializer)
        with connection_scope(self._bind) as conn:
            conn.execute(
                self._statement(queries.CREATE_MESSAGE),
                {
                    "message_id": message_id,
                    "correlation_key": key,
                    "message_bytes": self._lob_handler.encode(blob),
                    "version": 0,
                },
            )
        logger.debug("message_inserted", message_id=message_id, correlation_key=key)
        return stored

    def _update(self, message_id: MessageId, version: int, key: str | None, blob: bytes) -> None:
        with connection_scope(self._bind) as conn:
            updated = conn.execute(
                self._statement(queries.UPDATE_MESSAGE),
                {
                    "correlation_key": key,
                    "message_bytes": self._lob_handler.encode(blob),
                    "new_version": version + 1,
                    "version": version,
                    "message_id": message_id,
                },
            ).rowcount
            if updated == 0:
                current = conn.execute(
                    self._statement(queries.CURRENT_VERSION_MESSAGE), {"message_id": message_id}
                ).scalar_one_or_none()
                conflict = OptimisticLockConflictError(message_id, version, current)
                logger.warning("optimistic_lock_conflict", **conflict.log_fields())
                raise conflict
            if updated > 1:
                raise self._integrity_violation(message_id, "update", updated)
        logger.debug("message_updated", message_id=message_id, version=version + 1)

    def get(self, message_id: MessageId) -> Option[Envelope[Any]]:
        with connection_scope(self._bind) as conn:
            return self._fetch(conn, message_id)

    def delete(self, message_id: MessageId) -> Option[Envelope[Any]]:
        with connection_scope(self._bind) as conn:
            found = self._fetch(conn, message_id)
            if found.is_none():
                return found
            deleted = conn.execute(
                self._statement(queries.DELETE_MESSAGE), {"message_id": message_id}
            ).rowcount
            if deleted > 1:
                raise self._integrity_violation(message_id, "delete", deleted)
        if deleted == 0:
            return Nothing()
        logger.debug("message_deleted", message_id=message_id)
        return found

    def list(self, correlation_id: Any = ALL_MESSAGES) -> Sequence[Envelope[Any]]:
        if correlation_id is ALL_MESSAGES:
            stmt, params = self._statement(queries.LIST_ALL_MESSAGES), {}
        else:
            key = self.correlation_key(correlation_id)
            if key is None:
                return []
            stmt = self._statement(queries.LIST_MESSAGES_BY_CORRELATION_KEY)
            params = {"correlation_key": key}
        with connection_scope(self._bind) as conn:
            rows = conn.execute(stmt, params).all()
        return [self._map_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fetch(self, conn: Connection, message_id: MessageId) -> Option[Envelope[Any]]:
        row = conn.execute(self._statement(queries.GET_MESSAGE), {"message_id": message_id}).first()
        if row is None:
            return Nothing()
        return Some(self._map_row(row))

    def _map_row(self, row: Row[Any]) -> Envelope[Any]:
        mapping = row._mapping
        return blob_to_envelope(
            self._lob_handler.decode(mapping["message_bytes"]),
            int(mapping["message_id"]),
            int(mapping["version"]),
            self.serializer,
        )

    def _integrity_violation(self, message_id: MessageId, operation: str, rowcount: int) -> IntegrityViolationError:
        error = IntegrityViolationError(message_id, operation, rowcount)
        logger.error("integrity_violation", **error.log_fields())
        return error


__all__ = ["SqlAlchemyMessageStore"]
