"""Correlation-key normalization.

A correlation token can be any serializable value (a string, a tuple, a
small dataclass, ...). Before it is stored or queried it is reduced to a
fixed-length key::

    key = md5(serializer.serialize(token)).hexdigest()   # 32 lowercase hex chars

No salt is involved, so two processes submitting equal tokens through equal
serializers land in the same correlation group. An absent token maps to an
absent key, which never matches anything (``NULL = NULL`` is not true in
SQL, and the in-memory store mirrors that).
"""
from __future__ import annotations

import hashlib
from typing import Any

from msgstore.config.validation import ConfigError
from msgstore.kernel.messaging.serializer import PickleSerializer, Serializer

DIGEST_ALGORITHM = "md5"
CORRELATION_KEY_LENGTH = 32

_DEFAULT_SERIALIZER = PickleSerializer()


def ensure_digest_available() -> None:
    """Fail fast when the runtime cannot compute the correlation digest.

    Called once when a store is constructed so a FIPS-restricted interpreter
    surfaces as a configuration error at startup rather than on the first
    ``put``.
    """
    try:
        hashlib.new(DIGEST_ALGORITHM, usedforsecurity=False)
    except ValueError as exc:
        raise ConfigError(
            f"{DIGEST_ALGORITHM.upper()} algorithm not available; correlation keys cannot be computed",
            cause=exc,
        ) from exc


def correlation_key(token: Any, serializer: Serializer | None = None) -> str | None:
    """Return the 32-character hex key for *token*, or ``None`` when absent.

    Raises :class:`~msgstore.kernel.errors.SerializationError` when the token
    cannot be serialized.
    """
    if token is None:
        return None
    data = (serializer or _DEFAULT_SERIALIZER).serialize(token)
    return hashlib.new(DIGEST_ALGORITHM, data, usedforsecurity=False).hexdigest()


__all__ = [
    "CORRELATION_KEY_LENGTH",
    "DIGEST_ALGORITHM",
    "correlation_key",
    "ensure_digest_available",
]
