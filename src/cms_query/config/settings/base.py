"""Config settings – Settings base class and SearchSettings."""
from __future__ import annotations

import dataclasses
from typing import ClassVar

from cms_query.config.validation.errors import InvalidSettingValueError


@dataclasses.dataclass
class Settings:
    """Base class for 12-factor settings."""

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


@dataclasses.dataclass
class SearchSettings(Settings):
    """Engine-wide defaults every :class:`SearchConfiguration` starts from.

    Loaded from ``CMS_SEARCH_*`` environment variables by
    :class:`~cms_query.config.settings.loaders.EnvSettingsLoader`, e.g.
    ``CMS_SEARCH_MAX_PAGE_SIZE=50``.
    """

    _prefix = "CMS_SEARCH"

    default_page_size: int = 10
    max_page_size: int = 100
    min_search_term_length: int = 2
    max_search_term_length: int = 200
    language: str = "english"
    slow_search_threshold_ms: int = 500

    def _validate(self) -> None:
        if self.max_page_size < 1:
            raise InvalidSettingValueError("max_page_size", self.max_page_size, "must be >= 1")
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise InvalidSettingValueError(
                "default_page_size", self.default_page_size, f"must be between 1 and {self.max_page_size}"
            )
        if self.min_search_term_length < 1:
            raise InvalidSettingValueError("min_search_term_length", self.min_search_term_length, "must be >= 1")
        if self.max_search_term_length < self.min_search_term_length:
            raise InvalidSettingValueError(
                "max_search_term_length", self.max_search_term_length, "must be >= min_search_term_length"
            )
        if not self.language.strip():
            raise InvalidSettingValueError("language", self.language, "must not be empty")


__all__ = ["SearchSettings", "Settings"]
