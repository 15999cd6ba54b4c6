"""Kernel messaging – envelope and serializer primitives."""
from msgstore.kernel.messaging.envelope import (
    CORRELATION_ID_HEADER,
    ID_HEADER,
    RESERVED_HEADERS,
    VERSION_HEADER,
    Envelope,
    MessageId,
)
from msgstore.kernel.messaging.serializer import (
    JsonSerializer,
    PickleSerializer,
    Serializer,
)

__all__ = [
    "CORRELATION_ID_HEADER",
    "Envelope",
    "ID_HEADER",
    "JsonSerializer",
    "MessageId",
    "PickleSerializer",
    "RESERVED_HEADERS",
    "Serializer",
    "VERSION_HEADER",
]
