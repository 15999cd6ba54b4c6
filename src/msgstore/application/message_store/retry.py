"""Caller-side re-read-and-retry for optimistic-lock conflicts.

The store never retries on its own. Callers that want to apply a change
regardless of concurrent writers wrap it here::

    update_with_retry(store, 42, lambda env: env.with_payload(env.payload + 1))
"""
from __future__ import annotations

from typing import Any, Callable

import tenacity

from msgstore.application.message_store.store import MessageStore
from msgstore.kernel.errors import OptimisticLockConflictError
from msgstore.kernel.messaging import Envelope, MessageId
from msgstore.kernel.types import Nothing, Option, Some
from msgstore.observability.logging import get_logger

logger = get_logger(__name__)


def update_with_retry(
    store: MessageStore,
    message_id: MessageId,
    mutate: Callable[[Envelope[Any]], Envelope[Any]],
    *,
    max_attempts: int = 3,
    wait: Any = None,
) -> Option[Envelope[Any]]:
    """Fetch, mutate and put *message_id*, retrying on version conflicts.

    Each attempt re-reads the current envelope so *mutate* always sees the
    latest committed state. Returns :class:`Nothing` when the message does
    not exist (or disappears between attempts). After *max_attempts*
    conflicts the last :class:`OptimisticLockConflictError` is re-raised.
    """

    def _log_retry(retry_state: tenacity.RetryCallState) -> None:
        logger.info("optimistic_lock_retry", message_id=message_id, attempt=retry_state.attempt_number)

    retrying = tenacity.Retrying(
        stop=tenacity.stop_after_attempt(max_attempts),
        wait=wait or tenacity.wait_none(),
        retry=tenacity.retry_if_exception_type(OptimisticLockConflictError),
        before_sleep=_log_retry,
        reraise=True,
    )

    def _attempt() -> Option[Envelope[Any]]:
        current = store.get(message_id)
        if current.is_none():
            return Nothing()
        return Some(store.put(mutate(current.unwrap())))

    return retrying(_attempt)


__all__ = ["update_with_retry"]
