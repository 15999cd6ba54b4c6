"""Kernel messaging – the message envelope persisted by a message store."""
from __future__ import annotations

import dataclasses
from typing import Any, Generic, Mapping, TypeVar

T = TypeVar("T")

type MessageId = int

ID_HEADER = "MessageStore.ID"
"""Holds the surrogate key once the store has assigned one."""

VERSION_HEADER = "MessageStore.VERSION"
"""Holds the optimistic-lock version once the store has assigned one."""

CORRELATION_ID_HEADER = "correlation_id"
"""Caller-supplied correlation token used to group related messages."""

RESERVED_HEADERS = frozenset({ID_HEADER, VERSION_HEADER})


@dataclasses.dataclass(frozen=True, eq=True)
class Envelope(Generic[T]):
    """A payload plus an ordered mapping of header names to values.

    The store is the only writer of :data:`ID_HEADER` and
    :data:`VERSION_HEADER`. An envelope whose id header is absent or ``None`` is
    new and is inserted on ``put``; one carrying an id is an update attempt
    guarded by its version header.

    ``headers`` is copied on construction, so the mapping passed in can be
    reused freely by the caller.
    """

    payload: T
    headers: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", dict(self.headers))

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def id(self) -> MessageId | None:
        return self.headers.get(ID_HEADER)

    @property
    def version(self) -> int | None:
        return self.headers.get(VERSION_HEADER)

    @property
    def correlation_id(self) -> Any:
        return self.headers.get(CORRELATION_ID_HEADER)

    @property
    def has_id(self) -> bool:
        return self.headers.get(ID_HEADER) is not None

    def user_headers(self) -> dict[str, Any]:
        """Headers without the store-managed id/version entries."""
        return {k: v for k, v in self.headers.items() if k not in RESERVED_HEADERS}

    # ------------------------------------------------------------------
    # Copy helpers
    # ------------------------------------------------------------------

    def with_headers(self, headers: Mapping[str, Any]) -> "Envelope[T]":
        merged = dict(self.headers)
        merged.update(headers)
        return Envelope(self.payload, merged)

    def with_header(self, name: str, value: Any) -> "Envelope[T]":
        return self.with_headers({name: value})

    def without_headers(self, *names: str) -> "Envelope[T]":
        return Envelope(self.payload, {k: v for k, v in self.headers.items() if k not in names})

    def with_payload(self, payload: Any) -> "Envelope[Any]":
        return Envelope(payload, self.headers)

    def with_correlation_id(self, correlation_id: Any) -> "Envelope[T]":
        return self.with_header(CORRELATION_ID_HEADER, correlation_id)


__all__ = [
    "CORRELATION_ID_HEADER",
    "Envelope",
    "ID_HEADER",
    "MessageId",
    "RESERVED_HEADERS",
    "VERSION_HEADER",
]
