"""Config settings – EnvSettingsLoader, DotenvSettingsLoader.

A settings field ``max_page_size`` on a class whose ``_prefix`` is
``CMS_SEARCH`` is read from ``CMS_SEARCH_MAX_PAGE_SIZE``. Values are coerced
to the field's annotated type; a value that does not parse is reported
against the environment variable it came from.
"""
from __future__ import annotations

import abc
import dataclasses
import os
import types
import typing
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from dotenv import load_dotenv

from cms_query.config.settings.base import Settings
from cms_query.config.validation import ConfigError, InvalidSettingValueError, MissingRequiredSettingError

T = TypeVar("T", bound=Settings)

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def _to_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"expected one of {sorted(_TRUE | _FALSE)}")


def _to_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


_COERCERS: dict[Any, Callable[[str], Any]] = {
    bool: _to_bool,
    int: lambda raw: int(raw.strip()),
    float: lambda raw: float(raw.strip()),
    str: str,
    list: _to_list,
}


def env_key(settings_class: type[Settings], field_name: str) -> str:
    """Environment variable name for *field_name* on *settings_class*."""
    prefix = getattr(settings_class, "_prefix", "")
    return f"{prefix}_{field_name}".upper().lstrip("_")


def _target_type(hint: Any) -> Any:
    # `int | None` and `Optional[int]` coerce like `int`
    if isinstance(hint, types.UnionType) or typing.get_origin(hint) is typing.Union:
        members = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(members) == 1:
            return _target_type(members[0])
    return typing.get_origin(hint) or hint


class SettingsLoader(abc.ABC):
    """Port: load settings from an external source."""

    @abc.abstractmethod
    def load(self, settings_class: type[T]) -> T: ...


class EnvSettingsLoader(SettingsLoader):
    """Load settings from OS environment variables (or any mapping in tests)."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    def load(self, settings_class: type[T]) -> T:
        environ = os.environ if self._environ is None else self._environ
        hints = typing.get_type_hints(settings_class)
        kwargs: dict[str, Any] = {}

        for field in dataclasses.fields(settings_class):  # type: ignore[arg-type]
            key = env_key(settings_class, field.name)
            raw = environ.get(key)
            if raw is None:
                if field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING:
                    raise MissingRequiredSettingError(key)
                continue
            kwargs[field.name] = self._coerce(key, raw, hints.get(field.name, str))

        try:
            return settings_class(**kwargs)
        except ConfigError:
            raise
        except Exception as exc:
            raise ConfigError(f"Failed to load settings: {exc}") from exc

    def _coerce(self, key: str, raw: str, hint: Any) -> Any:
        coercer = _COERCERS.get(_target_type(hint), str)
        try:
            return coercer(raw)
        except ValueError as exc:
            raise InvalidSettingValueError(key, raw, str(exc)) from exc


class DotenvSettingsLoader(SettingsLoader):
    """Read a ``.env`` file into the process environment, then load from it.

    Variables already set in the environment win unless *override* is true.
    A missing file is not an error.
    """

    def __init__(self, env_file: str = ".env", override: bool = False) -> None:
        self._env_file = env_file
        self._override = override

    def load(self, settings_class: type[T]) -> T:
        load_dotenv(self._env_file, override=self._override)
        return EnvSettingsLoader().load(settings_class)


__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "SettingsLoader", "env_key"]
