"""SQLAlchemy adapter – connection scoping and backend error translation."""
from __future__ import annotations

import contextlib
from typing import Iterator

from sqlalchemy import Connection, Engine
from sqlalchemy import exc as sa_exc

from msgstore.kernel.errors import StorageUnavailableError
from msgstore.observability.logging import get_logger

logger = get_logger(__name__)

type Bind = Engine | Connection

_UNAVAILABLE = (sa_exc.OperationalError, sa_exc.InterfaceError)


def describe_bind(bind: Bind) -> str:
    """Backend URL with the password masked, for error messages and logs."""
    engine = bind if isinstance(bind, Engine) else bind.engine
    return engine.url.render_as_string(hide_password=True)


def _unavailable(bind: Bind, exc: Exception, reason: str) -> StorageUnavailableError:
    backend = describe_bind(bind)
    logger.error("storage_unavailable", backend=backend, error=reason)
    return StorageUnavailableError(backend, reason, cause=exc)


@contextlib.contextmanager
def connection_scope(bind: Bind) -> Iterator[Connection]:
    """Yield a connection for one store operation.

    With an :class:`Engine` a pooled connection is checked out inside
    ``engine.begin()``: committed on success, rolled back on error, and
    returned to the pool on every exit path. With a :class:`Connection` the
    caller owns the transaction; the connection is used as-is and never
    committed here.

    Connectivity failures are re-raised as
    :class:`~msgstore.kernel.errors.StorageUnavailableError`; every other
    database error propagates unchanged.
    """
    try:
        if isinstance(bind, Engine):
            with bind.begin() as conn:
                yield conn
        else:
            yield bind
    except sa_exc.DBAPIError as exc:
        if isinstance(exc, _UNAVAILABLE) or exc.connection_invalidated:
            raise _unavailable(bind, exc, str(exc.orig or exc)) from exc
        raise
    except sa_exc.DisconnectionError as exc:
        raise _unavailable(bind, exc, str(exc)) from exc


__all__ = ["Bind", "connection_scope", "describe_bind"]
