"""Config settings – Settings base class and MessageStoreSettings."""
from __future__ import annotations

import dataclasses
import re
from typing import ClassVar

from msgstore.config.validation import InvalidSettingValueError

INCREMENTER_KINDS = frozenset({"table", "sequence"})
SERIALIZER_KINDS = frozenset({"pickle", "json"})

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclasses.dataclass
class Settings:
    """Base class for 12-factor settings."""

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


@dataclasses.dataclass
class MessageStoreSettings(Settings):
    """Settings for a relational message store.

    Loaded from ``MSGSTORE_*`` environment variables by
    :class:`~msgstore.config.settings.loaders.EnvSettingsLoader`, e.g.
    ``MSGSTORE_DATABASE_URL`` and ``MSGSTORE_TABLE_PREFIX``.

    ``incrementer_name`` defaults to ``<table_prefix>MESSAGE_SEQ``, the
    counter table :func:`~msgstore.adapters.sqlalchemy.create_schema` creates.
    """

    _prefix: ClassVar[str] = "MSGSTORE"

    database_url: str
    table_prefix: str = "INT_"
    pool_size: int = 5
    echo: bool = False
    incrementer: str = "table"
    incrementer_name: str = ""
    serializer: str = "pickle"
    report_committed_version: bool = True

    def __post_init__(self) -> None:
        if not self.incrementer_name:
            self.incrementer_name = f"{self.table_prefix}MESSAGE_SEQ"
        super().__post_init__()

    def _validate(self) -> None:
        if not self.database_url:
            raise InvalidSettingValueError("database_url", self.database_url, "must not be empty")
        # prefix and counter names are spliced into SQL text
        if self.table_prefix and not _IDENTIFIER.match(self.table_prefix):
            raise InvalidSettingValueError("table_prefix", self.table_prefix, "must be a plain SQL identifier")
        if not _IDENTIFIER.match(self.incrementer_name):
            raise InvalidSettingValueError(
                "incrementer_name", self.incrementer_name, "must be a plain SQL identifier"
            )
        if self.pool_size < 1:
            raise InvalidSettingValueError("pool_size", self.pool_size, "must be at least 1")
        if self.incrementer not in INCREMENTER_KINDS:
            raise InvalidSettingValueError(
                "incrementer", self.incrementer, f"expected one of {sorted(INCREMENTER_KINDS)}"
            )
        if self.serializer not in SERIALIZER_KINDS:
            raise InvalidSettingValueError(
                "serializer", self.serializer, f"expected one of {sorted(SERIALIZER_KINDS)}"
            )


__all__ = ["INCREMENTER_KINDS", "MessageStoreSettings", "SERIALIZER_KINDS", "Settings"]
