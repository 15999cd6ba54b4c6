"""
msgstore – persistent message store with optimistic locking.

Import path convention::

    from msgstore.kernel.messaging import Envelope
    from msgstore.kernel.errors import OptimisticLockConflictError
    from msgstore.application.message_store import InMemoryMessageStore
    from msgstore.adapters.sqlalchemy import SqlAlchemyMessageStore
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
