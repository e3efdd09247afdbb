"""Config – 12-factor settings for the search engine."""

from cms_query.config.settings import DotenvSettingsLoader, EnvSettingsLoader, SearchSettings, Settings, SettingsLoader
from cms_query.config.validation import (
    ConfigError,
    InvalidFieldSelectorError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "InvalidFieldSelectorError",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "SearchSettings",
    "Settings",
    "SettingsLoader",
]
