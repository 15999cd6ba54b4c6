"""Infrastructure errors — I/O and codec failures."""

from __future__ import annotations

from typing import Any

from msgstore.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a store rule violation."""

    default_code = "infrastructure_error"


class StorageUnavailableError(InfrastructureError):
    """The relational backend could not be reached or dropped the connection."""

    default_code = "storage_unavailable"

    def __init__(
        self,
        resource: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("detail", {"resource": resource})
        super().__init__(message or f"Storage backend '{resource}' is unavailable", **kwargs)
        self.resource = resource


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize a payload, header or correlation token."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


__all__ = [
    "InfrastructureError",
    "SerializationError",
    "StorageUnavailableError",
]
