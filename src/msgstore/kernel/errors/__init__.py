"""Kernel error hierarchy — public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError              (domain.py)
    │   ├── ConflictError
    │   │   └── OptimisticLockConflictError
    │   └── InvariantViolationError
    │       └── IntegrityViolationError
    ├── ApplicationError         (application.py)
    │   └── ConfigError          (msgstore.config.validation)
    └── InfrastructureError      (infrastructure.py)
        ├── SerializationError
        └── StorageUnavailableError
"""

from msgstore.kernel.errors.application import ApplicationError
from msgstore.kernel.errors.base import BaseError
from msgstore.kernel.errors.domain import (
    ConflictError,
    DomainError,
    IntegrityViolationError,
    InvariantViolationError,
    OptimisticLockConflictError,
)
from msgstore.kernel.errors.infrastructure import (
    InfrastructureError,
    SerializationError,
    StorageUnavailableError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConflictError",
    "DomainError",
    "InfrastructureError",
    "IntegrityViolationError",
    "InvariantViolationError",
    "OptimisticLockConflictError",
    "SerializationError",
    "StorageUnavailableError",
]
