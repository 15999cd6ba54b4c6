"""SQLAlchemy adapter – table definitions for the message store.

Production schemas are provisioned by migrations; :func:`create_schema` is
meant for tests and local development. Table names are emitted unquoted so
they resolve exactly like the unquoted names in the statement templates on
every backend.
"""
from __future__ import annotations

from sqlalchemy import BigInteger, Column, Integer, LargeBinary, MetaData, String, Table, func, insert, select

from msgstore.adapters.sqlalchemy.queries import DEFAULT_TABLE_PREFIX
from msgstore.adapters.sqlalchemy.session import Bind, connection_scope
from msgstore.application.message_store.correlation import CORRELATION_KEY_LENGTH

COUNTER_COLUMN = "id"


def message_table(metadata: MetaData, table_prefix: str = DEFAULT_TABLE_PREFIX) -> Table:
    """``<prefix>message``: one row per stored envelope."""
    return Table(
        f"{table_prefix}message",
        metadata,
        Column("message_id", BigInteger, primary_key=True, autoincrement=False),
        Column("correlation_key", String(CORRELATION_KEY_LENGTH), nullable=True, index=True),
        Column("message_bytes", LargeBinary, nullable=False),
        Column("version", Integer, nullable=False, default=0),
        quote=False,
    )


def counter_table(metadata: MetaData, table_name: str) -> Table:
    """Single-row counter table backing :class:`TableIncrementer`."""
    return Table(
        table_name,
        metadata,
        Column(COUNTER_COLUMN, BigInteger, nullable=False),
        quote=False,
    )


def create_schema(
    bind: Bind,
    table_prefix: str = DEFAULT_TABLE_PREFIX,
    counter_table_name: str | None = None,
) -> MetaData:
    """Create the message table and a seeded counter table if missing.

    The counter table defaults to ``<prefix>MESSAGE_SEQ`` and is seeded with
    a single ``0`` row the first time it is created.
    """
    metadata = MetaData()
    message_table(metadata, table_prefix)
    counter = counter_table(metadata, counter_table_name or f"{table_prefix}MESSAGE_SEQ")

    with connection_scope(bind) as conn:
        metadata.create_all(conn)
        if conn.execute(select(func.count()).select_from(counter)).scalar_one() == 0:
            conn.execute(insert(counter).values({COUNTER_COLUMN: 0}))
    return metadata


__all__ = ["COUNTER_COLUMN", "counter_table", "create_schema", "message_table"]
