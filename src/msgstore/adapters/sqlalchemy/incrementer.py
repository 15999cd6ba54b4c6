"""SQLAlchemy adapter – database-backed surrogate-key incrementers."""
from __future__ import annotations

from sqlalchemy import Engine, Sequence, select, text

from msgstore.adapters.sqlalchemy.schema import COUNTER_COLUMN
from msgstore.adapters.sqlalchemy.session import connection_scope
from msgstore.application.message_store.incrementer import Incrementer
from msgstore.config.validation import ConfigError


class SequenceIncrementer(Incrementer):
    """Draw ids from a native database sequence (PostgreSQL, Oracle, ...).

    Each call runs ``nextval`` in its own short transaction so ids are
    never handed out twice, even when the insert that follows fails.
    """

    def __init__(self, engine: Engine, sequence_name: str) -> None:
        if not engine.dialect.supports_sequences:
            raise ConfigError(
                f"Dialect '{engine.dialect.name}' has no sequences; use TableIncrementer instead"
            )
        self._engine = engine
        self._sequence = Sequence(sequence_name)

    def next_value(self) -> int:
        with connection_scope(self._engine) as conn:
            return int(conn.execute(select(self._sequence.next_value())).scalar_one())


class TableIncrementer(Incrementer):
    """Draw ids from a single-row counter table (MySQL, SQLite, ...).

    The row is bumped and read back in one transaction, so the row lock
    taken by the ``UPDATE`` serialises concurrent allocators.
    """

    def __init__(self, engine: Engine, table_name: str, column_name: str = COUNTER_COLUMN) -> None:
        self._engine = engine
        self._table_name = table_name
        self._update = text(f"UPDATE {table_name} SET {column_name} = {column_name} + 1")
        self._select = text(f"SELECT {column_name} FROM {table_name}")

    def next_value(self) -> int:
        with connection_scope(self._engine) as conn:
            if conn.execute(self._update).rowcount != 1:
                raise ConfigError(f"Counter table '{self._table_name}' must hold exactly one row")
            return int(conn.execute(self._select).scalar_one())


__all__ = ["SequenceIncrementer", "TableIncrementer"]
