"""SQLAlchemy adapter – build an engine and a message store from settings."""
from __future__ import annotations

from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from msgstore.adapters.sqlalchemy.incrementer import SequenceIncrementer, TableIncrementer
from msgstore.adapters.sqlalchemy.message_store import SqlAlchemyMessageStore
from msgstore.application.message_store.incrementer import Incrementer
from msgstore.config.settings import MessageStoreSettings
from msgstore.kernel.messaging import JsonSerializer, PickleSerializer, Serializer
from msgstore.observability.logging import get_logger

logger = get_logger(__name__)


def create_engine_from_settings(settings: MessageStoreSettings, **engine_kwargs: Any) -> Engine:
    """Create a pooled engine for ``settings.database_url``.

    In-memory SQLite shares a single connection across threads; every other
    URL gets a ``QueuePool`` of ``pool_size`` connections with pre-ping so a
    dropped connection is replaced instead of surfacing mid-call.
    """
    kwargs: dict[str, Any] = {"echo": settings.echo}
    if settings.database_url in ("sqlite://", "sqlite:///:memory:", "sqlite+pysqlite:///:memory:"):
        kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    else:
        kwargs.update(pool_size=settings.pool_size, pool_pre_ping=True)
    kwargs.update(engine_kwargs)
    return create_engine(settings.database_url, **kwargs)


def create_incrementer(settings: MessageStoreSettings, engine: Engine) -> Incrementer:
    """Database-backed id allocator, so ids stay unique across processes and restarts."""
    if settings.incrementer == "sequence":
        return SequenceIncrementer(engine, settings.incrementer_name)
    return TableIncrementer(engine, settings.incrementer_name)


def create_serializer(settings: MessageStoreSettings) -> Serializer:
    if settings.serializer == "json":
        return JsonSerializer()
    return PickleSerializer()


def create_message_store(
    settings: MessageStoreSettings,
    engine: Engine | None = None,
) -> SqlAlchemyMessageStore:
    """Wire a :class:`SqlAlchemyMessageStore` from *settings*.

    Pass *engine* to share an existing pool; otherwise one is created with
    :func:`create_engine_from_settings`.
    """
    engine = engine or create_engine_from_settings(settings)
    store = SqlAlchemyMessageStore(
        engine,
        create_incrementer(settings, engine),
        table_prefix=settings.table_prefix,
        serializer=create_serializer(settings),
        report_committed_version=settings.report_committed_version,
    )
    logger.info(
        "message_store_configured",
        backend=engine.url.render_as_string(hide_password=True),
        table_prefix=settings.table_prefix,
        incrementer=settings.incrementer,
        serializer=settings.serializer,
    )
    return store


__all__ = [
    "create_engine_from_settings",
    "create_incrementer",
    "create_message_store",
    "create_serializer",
]
