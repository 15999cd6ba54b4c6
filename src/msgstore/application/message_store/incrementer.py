"""Surrogate-key allocation – Incrementer port and an in-process implementation."""

from __future__ import annotations

import abc
import itertools
import threading


class Incrementer(abc.ABC):
    """Port — hands out the next surrogate message id.

    Values must be unique and increasing; gaps are allowed (an id allocated
    for an insert that later fails is simply never used). Backend-specific
    implementations live in :mod:`msgstore.adapters.sqlalchemy.incrementer`.
    """

    @abc.abstractmethod
    def next_value(self) -> int:
        """Allocate and return the next id."""


class InMemoryIncrementer(Incrementer):
    """Thread-safe counter for tests and single-process deployments."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_value(self) -> int:
        with self._lock:
            return next(self._counter)


__all__ = ["InMemoryIncrementer", "Incrementer"]
