"""Config validation errors."""
from cms_query.config.validation.errors import (
    ConfigError,
    InvalidFieldSelectorError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = ["ConfigError", "InvalidFieldSelectorError", "InvalidSettingValueError", "MissingRequiredSettingError"]
