"""Config validation – errors raised while loading or checking store settings."""
from __future__ import annotations

from msgstore.kernel.errors import ApplicationError


class ConfigError(ApplicationError):
    """The store cannot be built as configured.

    Raised at construction time, never from ``put`` / ``get`` / ``delete`` /
    ``list``: a missing bind or incrementer, a digest the runtime lacks, an
    incrementer the dialect cannot back, or bad settings.
    """

    default_code = "config_error"


class MissingRequiredSettingError(ConfigError):
    """A required ``MSGSTORE_*`` variable was not set."""

    default_code = "missing_required_setting"

    def __init__(self, setting_name: str) -> None:
        super().__init__(
            f"Required setting '{setting_name}' is missing",
            detail={"setting_name": setting_name},
        )
        self.setting_name = setting_name


class InvalidSettingValueError(ConfigError):
    """A setting is present but cannot be used."""

    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str) -> None:
        super().__init__(
            f"Setting '{setting_name}' has invalid value {value!r}: {reason}",
            detail={"setting_name": setting_name, "value": repr(value), "reason": reason},
        )
        self.setting_name = setting_name
        self.value = value
        self.reason = reason


__all__ = ["ConfigError", "InvalidSettingValueError", "MissingRequiredSettingError"]
