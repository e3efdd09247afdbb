"""Config settings – 12-factor env-based configuration."""
from cms_query.config.settings.base import SearchSettings, Settings
from cms_query.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "SearchSettings", "Settings", "SettingsLoader"]
