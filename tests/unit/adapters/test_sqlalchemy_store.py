"""Unit tests for the SQLAlchemy adapter.

Uses file-backed SQLite databases under ``tmp_path``, so no server is needed.
"""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy import Engine, create_engine, text

from msgstore.adapters.sqlalchemy import (
    DefaultLobHandler,
    SequenceIncrementer,
    SqlAlchemyMessageStore,
    StreamingLobHandler,
    TableIncrementer,
    create_schema,
    render_query,
)
from msgstore.adapters.sqlalchemy import queries
from msgstore.application.message_store import InMemoryIncrementer
from msgstore.config.validation import ConfigError
from msgstore.kernel.errors import (
    IntegrityViolationError,
    OptimisticLockConflictError,
    SerializationError,
    StorageUnavailableError,
)
from msgstore.kernel.messaging import (
    CORRELATION_ID_HEADER,
    ID_HEADER,
    VERSION_HEADER,
    Envelope,
    JsonSerializer,
)

# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _store(engine: Engine, **kwargs) -> SqlAlchemyMessageStore:
    return SqlAlchemyMessageStore(engine, TableIncrementer(engine, "INT_MESSAGE_SEQ"), **kwargs)


def _count(engine: Engine, table: str = "INT_message") -> int:
    with engine.connect() as conn:
        return conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one()


# ---------------------------------------------------------------------------
# Statement templates
# ---------------------------------------------------------------------------


class TestQueries:
    def test_render_substitutes_prefix(self) -> None:
        assert render_query(queries.DELETE_MESSAGE, "APP_") == (
            "DELETE FROM APP_message WHERE message_id = :message_id"
        )

    def test_every_template_has_prefix_placeholder(self) -> None:
        for template in (
            queries.LIST_MESSAGES_BY_CORRELATION_KEY,
            queries.LIST_ALL_MESSAGES,
            queries.GET_MESSAGE,
            queries.DELETE_MESSAGE,
            queries.CREATE_MESSAGE,
            queries.UPDATE_MESSAGE,
            queries.CURRENT_VERSION_MESSAGE,
        ):
            assert queries.PREFIX_PLACEHOLDER in template

    def test_update_is_version_guarded(self) -> None:
        assert "WHERE version = :version AND message_id = :message_id" in queries.UPDATE_MESSAGE

    def test_get_query_can_be_overridden(self, engine: Engine) -> None:
        class UpperStore(SqlAlchemyMessageStore):
            def get_query(self, template: str) -> str:
                return super().get_query(template).replace("SELECT", "select")

        store = UpperStore(engine, InMemoryIncrementer())
        assert store.get_query(queries.GET_MESSAGE).startswith("select")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_bind_is_mandatory(self) -> None:
        with pytest.raises(ConfigError):
            SqlAlchemyMessageStore(None, InMemoryIncrementer())

    def test_incrementer_is_mandatory(self, engine: Engine) -> None:
        with pytest.raises(ConfigError):
            SqlAlchemyMessageStore(engine, None)

    def test_default_prefix(self, engine: Engine) -> None:
        assert SqlAlchemyMessageStore(engine, InMemoryIncrementer()).table_prefix == "INT_"


# ---------------------------------------------------------------------------
# Persistence details
# ---------------------------------------------------------------------------


class TestStoredRows:
    def test_insert_writes_one_row_with_version_zero(self, engine: Engine) -> None:
        stored = _store(engine).put(Envelope("hello", {CORRELATION_ID_HEADER: "order-42"}))
        with engine.connect() as conn:
            row = conn.execute(
                text("SELECT message_id, correlation_key, version FROM INT_message")
            ).one()
        assert row.message_id == stored.id
        assert row.version == 0
        assert len(row.correlation_key) == 32

    def test_untagged_message_has_null_correlation_key(self, engine: Engine) -> None:
        _store(engine).put(Envelope("plain"))
        with engine.connect() as conn:
            key = conn.execute(text("SELECT correlation_key FROM INT_message")).scalar_one()
        assert key is None

    def test_update_bumps_version_column(self, engine: Engine) -> None:
        store = _store(engine)
        stored = store.put(Envelope("a"))
        store.put(stored.with_payload("b"))
        with engine.connect() as conn:
            version = conn.execute(text("SELECT version FROM INT_message")).scalar_one()
        assert version == 1

    def test_ids_come_from_counter_table(self, engine: Engine) -> None:
        store = _store(engine)
        assert [store.put(Envelope(i)).id for i in range(3)] == [1, 2, 3]

    def test_custom_prefix(self, tmp_path: Path) -> None:
        eng = create_engine(f"sqlite:///{tmp_path / 'prefixed.db'}")
        create_schema(eng, table_prefix="APP_")
        store = SqlAlchemyMessageStore(
            eng, TableIncrementer(eng, "APP_MESSAGE_SEQ"), table_prefix="APP_"
        )
        stored = store.put(Envelope("prefixed"))
        assert store.get(stored.id).unwrap().payload == "prefixed"
        assert _count(eng, "APP_message") == 1
        eng.dispose()

    def test_data_survives_a_new_store_instance(self, engine: Engine) -> None:
        stored = _store(engine).put(Envelope("durable", {CORRELATION_ID_HEADER: "g"}))
        fresh = _store(engine)
        assert fresh.get(stored.id).unwrap().payload == "durable"
        assert [e.payload for e in fresh.list("g")] == ["durable"]

    def test_corrupt_blob_raises_serialization_error(self, engine: Engine) -> None:
        with engine.begin() as conn:
            conn.execute(
                text("INSERT INTO INT_message (message_id, correlation_key, message_bytes, version) "
                     "VALUES (1, NULL, :b, 0)"),
                {"b": b"not a pickle"},
            )
        with pytest.raises(SerializationError):
            _store(engine).get(1)

    def test_report_pre_increment_version(self, engine: Engine) -> None:
        store = _store(engine, report_committed_version=False)
        stored = store.put(Envelope("a"))
        updated = store.put(stored.with_payload("b"))
        assert updated.version == 0
        assert store.get(stored.id).unwrap().version == 1
        with pytest.raises(OptimisticLockConflictError):
            store.put(updated)

    def test_json_serializer(self, engine: Engine) -> None:
        store = _store(engine, serializer=JsonSerializer())
        stored = store.put(Envelope({"n": 1}, {CORRELATION_ID_HEADER: {"order": 42}}))
        assert store.get(stored.id).unwrap().payload == {"n": 1}
        assert [e.payload for e in store.list({"order": 42})] == [{"n": 1}]


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TestCallerOwnedConnection:
    def test_rollback_discards_puts(self, engine: Engine) -> None:
        with engine.connect() as conn:
            trans = conn.begin()
            store = SqlAlchemyMessageStore(conn, InMemoryIncrementer())
            stored = store.put(Envelope("tentative"))
            assert store.get(stored.id).is_some()
            trans.rollback()
        assert _count(engine) == 0

    def test_commit_keeps_puts(self, engine: Engine) -> None:
        with engine.connect() as conn:
            with conn.begin():
                SqlAlchemyMessageStore(conn, InMemoryIncrementer()).put(Envelope("kept"))
        assert [e.payload for e in _store(engine).list()] == ["kept"]


# ---------------------------------------------------------------------------
# Failure translation
# ---------------------------------------------------------------------------


class TestStorageUnavailable:
    def test_unreachable_database(self, tmp_path: Path) -> None:
        eng = create_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'db.sqlite'}")
        store = SqlAlchemyMessageStore(eng, InMemoryIncrementer())
        with pytest.raises(StorageUnavailableError) as exc_info:
            store.get(1)
        assert exc_info.value.code == "storage_unavailable"
        assert exc_info.value.cause is not None
        eng.dispose()


class TestIntegrityViolation:
    @pytest.fixture
    def duplicated(self, tmp_path: Path) -> Iterator[Engine]:
        """A message table that lost its primary key and holds id 1 twice."""
        eng = create_engine(f"sqlite:///{tmp_path / 'broken.db'}")
        blob = JsonSerializer().serialize({"payload": "dup", "headers": {}})
        with eng.begin() as conn:
            conn.execute(
                text("CREATE TABLE INT_message (message_id BIGINT, correlation_key VARCHAR(32), "
                     "message_bytes BLOB, version INTEGER)")
            )
            for _ in range(2):
                conn.execute(
                    text("INSERT INTO INT_message VALUES (1, NULL, :b, 0)"), {"b": blob}
                )
        yield eng
        eng.dispose()

    def test_update_touching_two_rows_aborts(self, duplicated: Engine) -> None:
        store = SqlAlchemyMessageStore(duplicated, InMemoryIncrementer(), serializer=JsonSerializer())
        with pytest.raises(IntegrityViolationError) as exc_info:
            store.put(Envelope("new", {ID_HEADER: 1, VERSION_HEADER: 0}))
        assert exc_info.value.rowcount == 2
        with duplicated.connect() as conn:
            versions = conn.execute(text("SELECT version FROM INT_message")).scalars().all()
        assert versions == [0, 0]

    def test_delete_touching_two_rows_aborts(self, duplicated: Engine) -> None:
        store = SqlAlchemyMessageStore(duplicated, InMemoryIncrementer(), serializer=JsonSerializer())
        with pytest.raises(IntegrityViolationError):
            store.delete(1)
        assert _count(duplicated) == 2


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestConcurrency:
    WORKERS = 4

    def _race(self, func) -> list:
        barrier = threading.Barrier(self.WORKERS)

        def run(i: int):
            barrier.wait()
            try:
                return func(i)
            except OptimisticLockConflictError as exc:
                return exc

        with ThreadPoolExecutor(max_workers=self.WORKERS) as pool:
            return list(pool.map(run, range(self.WORKERS)))

    def test_racing_updates_exactly_one_wins(self, engine: Engine) -> None:
        store = _store(engine)
        stored = store.put(Envelope("base"))

        results = self._race(lambda i: store.put(stored.with_payload(f"writer-{i}")))

        winners = [r for r in results if isinstance(r, Envelope)]
        conflicts = [r for r in results if isinstance(r, OptimisticLockConflictError)]
        assert len(winners) == 1
        assert len(conflicts) == self.WORKERS - 1
        fetched = store.get(stored.id).unwrap()
        assert fetched.version == 1
        assert fetched.payload == winners[0].payload

    def test_racing_deletes_at_most_one_succeeds(self, engine: Engine) -> None:
        store = _store(engine)
        stored = store.put(Envelope("contested"))

        results = self._race(lambda i: store.delete(stored.id))

        assert sum(1 for r in results if r.is_some()) == 1
        assert store.get(stored.id).is_none()

    def test_racing_inserts_get_distinct_ids(self, engine: Engine) -> None:
        store = _store(engine)
        results = self._race(lambda i: store.put(Envelope(i)))
        assert len({r.id for r in results}) == self.WORKERS
        assert _count(engine) == self.WORKERS


# ---------------------------------------------------------------------------
# Incrementers
# ---------------------------------------------------------------------------


class TestIncrementers:
    def test_table_incrementer_counts_up(self, engine: Engine) -> None:
        inc = TableIncrementer(engine, "INT_MESSAGE_SEQ")
        assert [inc.next_value() for _ in range(3)] == [1, 2, 3]

    def test_table_incrementer_requires_seeded_row(self, engine: Engine) -> None:
        with engine.begin() as conn:
            conn.execute(text("DELETE FROM INT_MESSAGE_SEQ"))
        with pytest.raises(ConfigError):
            TableIncrementer(engine, "INT_MESSAGE_SEQ").next_value()

    def test_sequence_incrementer_rejects_sqlite(self, engine: Engine) -> None:
        with pytest.raises(ConfigError):
            SequenceIncrementer(engine, "INT_MESSAGE_SEQ")

    def test_in_memory_incrementer_is_thread_safe(self) -> None:
        inc = InMemoryIncrementer()
        with ThreadPoolExecutor(max_workers=8) as pool:
            values = list(pool.map(lambda _: inc.next_value(), range(200)))
        assert sorted(values) == list(range(1, 201))


# ---------------------------------------------------------------------------
# LOB handlers
# ---------------------------------------------------------------------------


class _Locator:
    def __init__(self, data: bytes) -> None:
        self._data = data

    def read(self) -> bytes:
        return self._data


class TestLobHandlers:
    def test_default_accepts_buffer_types(self) -> None:
        handler = DefaultLobHandler()
        assert handler.decode(b"abc") == b"abc"
        assert handler.decode(memoryview(b"abc")) == b"abc"
        assert handler.decode(bytearray(b"abc")) == b"abc"

    def test_default_rejects_other_values(self) -> None:
        with pytest.raises(SerializationError):
            DefaultLobHandler().decode("text")

    def test_streaming_reads_locators(self) -> None:
        assert StreamingLobHandler().decode(_Locator(b"lob")) == b"lob"

    def test_streaming_handler_in_store(self, engine: Engine) -> None:
        store = _store(engine, lob_handler=StreamingLobHandler())
        stored = store.put(Envelope("via-stream"))
        assert store.get(stored.id).unwrap().payload == "via-stream"
