"""Kernel errors – BaseError, root of the msgstore error hierarchy."""

from __future__ import annotations

import json
from typing import Any


class BaseError(Exception):
    """Root of every error the store raises on purpose.

    Each error carries a stable ``code`` slug and a flat ``detail`` mapping
    with the identifiers involved (``message_id``, ``expected_version``,
    ``setting_name``, ...). Store log events are built from the same
    mapping via :meth:`log_fields`, so a log line and the exception a caller
    catches always name the same values.

    Args:
        message: Human-readable description.
        code: Machine-readable slug (defaults to ``default_code``).
        detail: Identifiers describing the failure; values must be JSON-safe.
        cause: Lower-level exception that triggered this error.
    """

    default_code: str = "base_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = dict(detail or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def log_fields(self) -> dict[str, Any]:
        """Flat key/value pairs for a structlog event."""
        return {"error_code": self.code, **self.detail}

    def to_dict(self) -> dict[str, Any]:
        """Plain dict with the error type, code, message and detail."""
        payload: dict[str, Any] = {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }
        if self.cause is not None:
            payload["cause"] = repr(self.cause)
        return payload

    def to_json(self) -> str:
        """One-line JSON rendering of :meth:`to_dict`."""
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


__all__ = ["BaseError"]
