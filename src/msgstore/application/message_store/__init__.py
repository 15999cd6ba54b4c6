"""Message store – port, correlation keys, id allocation and in-memory store."""
from msgstore.application.message_store.correlation import (
    CORRELATION_KEY_LENGTH,
    correlation_key,
    ensure_digest_available,
)
from msgstore.application.message_store.incrementer import InMemoryIncrementer, Incrementer
from msgstore.application.message_store.retry import update_with_retry
from msgstore.application.message_store.store import (
    ALL_MESSAGES,
    InMemoryMessageStore,
    MessageStore,
)

__all__ = [
    "ALL_MESSAGES",
    "CORRELATION_KEY_LENGTH",
    "InMemoryIncrementer",
    "InMemoryMessageStore",
    "Incrementer",
    "MessageStore",
    "correlation_key",
    "ensure_digest_available",
    "update_with_retry",
]
