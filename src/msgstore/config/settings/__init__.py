"""Config settings – 12-factor env-based configuration."""
from msgstore.config.settings.base import MessageStoreSettings, Settings
from msgstore.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = [
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "MessageStoreSettings",
    "Settings",
    "SettingsLoader",
]
