"""Config validation errors."""
from cms_query.kernel.errors import ApplicationError


class ConfigError(ApplicationError):
    """Raised when configuration is invalid or loading failed."""
    default_code = "config_error"


class MissingRequiredSettingError(ConfigError):
    """A required environment variable / setting is absent."""
    default_code = "missing_required_setting"

    def __init__(self, setting_name: str) -> None:
        super().__init__(f"Required setting '{setting_name}' is missing")
        self.setting_name = setting_name


class InvalidSettingValueError(ConfigError):
    """A setting's value is present but semantically invalid."""
    default_code = "invalid_setting_value"

    def __init__(self, setting_name: str, value: object, reason: str) -> None:
        super().__init__(
            f"Setting '{setting_name}' has invalid value {value!r}: {reason}"
        )
        self.setting_name = setting_name
        self.value = value
        self.reason = reason


class InvalidFieldSelectorError(ConfigError):
    """A field registration did not name a direct attribute of the entity."""
    default_code = "invalid_field_selector"

    def __init__(self, entity: str, selector: object, reason: str) -> None:
        super().__init__(f"Invalid field selector {selector!r} for {entity}: {reason}")
        self.entity = entity
        self.selector = selector
        self.reason = reason


__all__ = ["ConfigError", "InvalidFieldSelectorError", "InvalidSettingValueError", "MissingRequiredSettingError"]
