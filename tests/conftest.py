"""Shared fixtures: file-backed SQLite engines and both store implementations.

SQLite files under ``tmp_path`` are used instead of ``:memory:`` so that
every pooled connection (and every thread in the concurrency tests) sees the
same database.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy import Engine, create_engine

from msgstore.adapters.sqlalchemy import SqlAlchemyMessageStore, TableIncrementer, create_schema
from msgstore.application.message_store import InMemoryMessageStore, MessageStore


def make_engine(path: Path) -> Engine:
    return create_engine(f"sqlite:///{path}", connect_args={"timeout": 30})


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    eng = make_engine(tmp_path / "messages.db")
    create_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def sql_store(engine: Engine) -> SqlAlchemyMessageStore:
    return SqlAlchemyMessageStore(engine, TableIncrementer(engine, "INT_MESSAGE_SEQ"))


@pytest.fixture
def memory_store() -> InMemoryMessageStore:
    return InMemoryMessageStore()


@pytest.fixture(params=["sqlalchemy", "memory"])
def store(request: pytest.FixtureRequest) -> MessageStore:
    """Every :class:`MessageStore` implementation, for contract tests."""
    if request.param == "sqlalchemy":
        return request.getfixturevalue("sql_store")
    return request.getfixturevalue("memory_store")
