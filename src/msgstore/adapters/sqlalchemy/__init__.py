"""SQLAlchemy adapter – relational message store, incrementers, LOB handlers, schema."""
from msgstore.adapters.sqlalchemy.factory import (
    create_engine_from_settings,
    create_incrementer,
    create_message_store,
    create_serializer,
)
from msgstore.adapters.sqlalchemy.incrementer import SequenceIncrementer, TableIncrementer
from msgstore.adapters.sqlalchemy.lob import DefaultLobHandler, LobHandler, StreamingLobHandler
from msgstore.adapters.sqlalchemy.message_store import SqlAlchemyMessageStore
from msgstore.adapters.sqlalchemy.queries import DEFAULT_TABLE_PREFIX, render_query
from msgstore.adapters.sqlalchemy.schema import create_schema, message_table
from msgstore.adapters.sqlalchemy.session import connection_scope

__all__ = [
    "DEFAULT_TABLE_PREFIX",
    "DefaultLobHandler",
    "LobHandler",
    "SequenceIncrementer",
    "SqlAlchemyMessageStore",
    "StreamingLobHandler",
    "TableIncrementer",
    "connection_scope",
    "create_engine_from_settings",
    "create_incrementer",
    "create_message_store",
    "create_schema",
    "create_serializer",
    "message_table",
    "render_query",
]
