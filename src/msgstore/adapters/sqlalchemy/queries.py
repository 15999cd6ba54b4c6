"""SQLAlchemy adapter – SQL statement templates for the message table.

Templates are plain strings with a ``%PREFIX%`` placeholder for the table
prefix and named bind parameters. They stay free of dialect-specific syntax
so one set serves every backend; anything a dialect needs differently is
pushed into the incrementer or LOB handler.
"""
from __future__ import annotations

PREFIX_PLACEHOLDER = "%PREFIX%"

DEFAULT_TABLE_PREFIX = "INT_"

_COLUMNS = "message_id, correlation_key, message_bytes, version"

LIST_MESSAGES_BY_CORRELATION_KEY = (
    f"SELECT {_COLUMNS} FROM %PREFIX%message WHERE correlation_key = :correlation_key"
)

LIST_ALL_MESSAGES = f"SELECT {_COLUMNS} FROM %PREFIX%message"

GET_MESSAGE = f"SELECT {_COLUMNS} FROM %PREFIX%message WHERE message_id = :message_id"

DELETE_MESSAGE = "DELETE FROM %PREFIX%message WHERE message_id = :message_id"

CREATE_MESSAGE = (
    f"INSERT INTO %PREFIX%message ({_COLUMNS}) "
    "VALUES (:message_id, :correlation_key, :message_bytes, :version)"
)

UPDATE_MESSAGE = (
    "UPDATE %PREFIX%message SET correlation_key = :correlation_key, "
    "message_bytes = :message_bytes, version = :new_version "
    "WHERE version = :version AND message_id = :message_id"
)

CURRENT_VERSION_MESSAGE = "SELECT version FROM %PREFIX%message WHERE message_id = :message_id"


def render_query(template: str, table_prefix: str) -> str:
    """Substitute *table_prefix* into *template*."""
    return template.replace(PREFIX_PLACEHOLDER, table_prefix)


__all__ = [
    "CREATE_MESSAGE",
    "CURRENT_VERSION_MESSAGE",
    "DEFAULT_TABLE_PREFIX",
    "DELETE_MESSAGE",
    "GET_MESSAGE",
    "LIST_ALL_MESSAGES",
    "LIST_MESSAGES_BY_CORRELATION_KEY",
    "PREFIX_PLACEHOLDER",
    "UPDATE_MESSAGE",
    "render_query",
]
