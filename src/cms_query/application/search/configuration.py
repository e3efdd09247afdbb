"""Application search – SearchConfiguration field registry.

A configuration is declared once per entity query::

    config = (
        SearchConfiguration(User)
        .add_searchable_field(User.email, "A")
        .add_searchable_field(User.first_name, "B")
        .add_filterable_field(User.role, FilterOperator.EQUALS, FilterOperator.IN)
        .add_sortable_field(User.created_at)
        .set_default_sort(User.created_at, descending=True)
    )

Selectors are either attribute names (``"email"``) or SQLAlchemy
instrumented attributes (``User.email``). Anything else (derived SQL
expressions, lambdas, unknown names) raises
:class:`~cms_query.config.InvalidFieldSelectorError` at registration time.

Every declared field resolves to a :class:`FieldDescriptor` from a per-entity
accessor table, so lookups during a search are dictionary probes keyed by
the normalised field name (case and underscores ignored: ``"CreatedAt"``
finds ``created_at``).
"""
from __future__ import annotations

import dataclasses
import enum
import functools
import operator
import types
import typing
from collections.abc import Mapping
from typing import Any, Callable, Generic, TypeVar

import sqlalchemy as sa
from sqlalchemy.orm import ColumnProperty, QueryableAttribute

from cms_query.application.search.query import FilterOperator
from cms_query.config.settings.base import SearchSettings
from cms_query.config.validation.errors import ConfigError, InvalidFieldSelectorError

T = TypeVar("T")


def normalize_field_name(name: str) -> str:
    return name.replace("_", "").lower()


class SearchWeight(str, enum.Enum):
    """Full-text weight class, A highest to D lowest."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @property
    def rank_weight(self) -> float:
        """Default multiplier PostgreSQL's ``ts_rank`` applies to this class."""
        return _RANK_WEIGHTS[self]

    @classmethod
    def parse(cls, raw: "SearchWeight | str") -> "SearchWeight":
        if isinstance(raw, SearchWeight):
            return raw
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            raise ConfigError(f"Unknown search weight {raw!r}; expected one of A, B, C, D") from None


_RANK_WEIGHTS = {SearchWeight.A: 1.0, SearchWeight.B: 0.4, SearchWeight.C: 0.2, SearchWeight.D: 0.1}


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    """Typed accessor for one entity attribute."""

    name: str
    python_type: type
    nullable: bool = True
    timezone_aware: bool | None = None
    getter: Callable[[Any], Any] = dataclasses.field(default=None, compare=False, repr=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.getter is None:
            object.__setattr__(self, "getter", operator.attrgetter(self.name))

    @property
    def key(self) -> str:
        return normalize_field_name(self.name)

    @property
    def is_string(self) -> bool:
        return issubclass(self.python_type, str) and not issubclass(self.python_type, enum.Enum)

    def read(self, row: Any) -> Any:
        return self.getter(row)


# ---------------------------------------------------------------------------
# Entity introspection
# ---------------------------------------------------------------------------


def _unwrap_optional(hint: Any) -> tuple[Any, bool]:
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        nullable = len(args) != len(typing.get_args(hint))
        if len(args) == 1:
            return args[0], nullable
        return object, nullable
    return hint, False


def _plain_type(hint: Any) -> type:
    origin = typing.get_origin(hint)
    if origin is not None:
        # list[str] filters as a list; Literal and friends fall back to object
        return origin if isinstance(origin, type) else object
    return hint if isinstance(hint, type) else object


def _column_descriptor(key: str, column: sa.Column[Any]) -> FieldDescriptor:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        python_type = object
    return FieldDescriptor(
        name=key,
        python_type=python_type,
        nullable=bool(column.nullable),
        timezone_aware=bool(getattr(column.type, "timezone", False)),
    )


@functools.lru_cache(maxsize=None)
def accessor_table(entity: type) -> dict[str, FieldDescriptor]:
    """Build (once per entity type) the attribute-name → descriptor table."""
    mapper = sa.inspect(entity, raiseerr=False)
    if mapper is not None and hasattr(mapper, "column_attrs"):
        table: dict[str, FieldDescriptor] = {}
        for attr in mapper.column_attrs:
            if len(attr.columns) == 1 and isinstance(attr.columns[0], sa.Column):
                table[attr.key] = _column_descriptor(attr.key, attr.columns[0])
        return table

    hints = typing.get_type_hints(entity)
    if dataclasses.is_dataclass(entity):
        names = [f.name for f in dataclasses.fields(entity)]
    else:
        names = [n for n in hints if not n.startswith("_")]

    table = {}
    for name in names:
        hint, nullable = _unwrap_optional(hints.get(name, Any))
        python_type = _plain_type(hint)
        table[name] = FieldDescriptor(
            name=name,
            python_type=python_type,
            nullable=nullable or python_type is object,
            timezone_aware=None,
        )
    return table


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class SearchConfiguration(Generic[T]):
    """Per-entity catalogue of searchable, filterable and sortable fields.

    The fluent ``add_*`` / ``set_*`` methods are only valid while the
    configuration is being built; :meth:`freeze` (called by the search
    service on entry) makes it read-only for the rest of the request.
    """

    def __init__(self, entity: type[T], settings: SearchSettings | None = None) -> None:
        settings = settings or SearchSettings()
        self.entity = entity
        self._fields = accessor_table(entity)
        self._by_key = {d.key: d for d in self._fields.values()}
        self._frozen = False

        self._searchable: dict[str, SearchWeight] = {}
        self._filterable: dict[str, frozenset[FilterOperator]] = {}
        self._sortable: set[str] = set()
        self._facets: list[str] = []
        self._highlights: list[str] = []
        self.default_sort_field: str | None = None
        self.default_sort_descending = False
        self.soft_delete_field: str | None = None

        self.default_page_size = settings.default_page_size
        self.max_page_size = settings.max_page_size
        self.min_search_term_length = settings.min_search_term_length
        self.max_search_term_length = settings.max_search_term_length
        self.language = settings.language

    @property
    def entity_name(self) -> str:
        return getattr(self.entity, "__name__", str(self.entity))

    @property
    def searchable_fields(self) -> Mapping[str, SearchWeight]:
        """Searchable field name to weight, in registration order."""
        return types.MappingProxyType(self._searchable)

    @property
    def filterable_fields(self) -> Mapping[str, frozenset[FilterOperator]]:
        return types.MappingProxyType(self._filterable)

    @property
    def sortable_fields(self) -> frozenset[str]:
        return frozenset(self._sortable)

    @property
    def facet_fields(self) -> tuple[str, ...]:
        return tuple(self._facets)

    @property
    def highlight_fields(self) -> tuple[str, ...]:
        return tuple(self._highlights)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "SearchConfiguration[T]":
        """Reject any further registration or attribute change."""
        self._frozen = True
        return self

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_") and getattr(self, "_frozen", False):
            raise ConfigError(f"Search configuration for {self.entity_name} is frozen; cannot set {name!r}")
        super().__setattr__(name, value)

    # -- registration ----------------------------------------------------

    def add_searchable_field(self, selector: Any, weight: SearchWeight | str = SearchWeight.D) -> "SearchConfiguration[T]":
        self._ensure_mutable()
        name = self._resolve_selector(selector).name
        self._searchable[name] = SearchWeight.parse(weight)
        return self

    def add_filterable_field(self, selector: Any, *allowed_operators: FilterOperator | str) -> "SearchConfiguration[T]":
        self._ensure_mutable()
        name = self._resolve_selector(selector).name
        operators: set[FilterOperator] = set()
        for raw in allowed_operators:
            op = FilterOperator.parse(raw)
            if op is None:
                raise ConfigError(f"Unknown filter operator {raw!r} for {self.entity_name}.{name}")
            operators.add(op)
        self._filterable[name] = frozenset(operators or {FilterOperator.EQUALS})
        return self

    def add_sortable_field(self, selector: Any) -> "SearchConfiguration[T]":
        self._ensure_mutable()
        self._sortable.add(self._resolve_selector(selector).name)
        return self

    def set_default_sort(self, selector: Any, descending: bool = False) -> "SearchConfiguration[T]":
        self._ensure_mutable()
        self.default_sort_field = self._resolve_selector(selector).name
        self.default_sort_descending = descending
        return self

    def set_soft_delete_field(self, selector: Any) -> "SearchConfiguration[T]":
        """Register the "deleted at" attribute hidden unless ``include_deleted`` is set."""
        self._ensure_mutable()
        descriptor = self._resolve_selector(selector)
        if not descriptor.nullable:
            raise InvalidFieldSelectorError(self.entity_name, selector, "soft-delete field must be nullable")
        self.soft_delete_field = descriptor.name
        return self

    def add_facet_field(self, selector: Any) -> "SearchConfiguration[T]":
        self._ensure_mutable()
        name = self._resolve_selector(selector).name
        if name not in self._facets:
            self._facets.append(name)
        return self

    def add_highlight_field(self, selector: Any) -> "SearchConfiguration[T]":
        self._ensure_mutable()
        descriptor = self._resolve_selector(selector)
        if descriptor.name not in self._searchable:
            raise InvalidFieldSelectorError(self.entity_name, selector, "highlight fields must be searchable")
        if descriptor.name not in self._highlights:
            self._highlights.append(descriptor.name)
        return self

    def set_page_size(self, default: int | None = None, maximum: int | None = None) -> "SearchConfiguration[T]":
        self._ensure_mutable()
        maximum = self.max_page_size if maximum is None else maximum
        default = self.default_page_size if default is None else default
        if maximum < 1 or not 1 <= default <= maximum:
            raise ConfigError(f"Invalid page sizes default={default} maximum={maximum}")
        self.default_page_size = default
        self.max_page_size = maximum
        return self

    def set_language(self, language: str) -> "SearchConfiguration[T]":
        self._ensure_mutable()
        if not language.strip():
            raise ConfigError("Text search language must not be empty")
        self.language = language
        return self

    def set_min_search_term_length(self, length: int) -> "SearchConfiguration[T]":
        self._ensure_mutable()
        if length < 1:
            raise ConfigError("Minimum search term length must be >= 1")
        self.min_search_term_length = length
        return self

    # -- lookups ---------------------------------------------------------

    def field(self, name: str) -> FieldDescriptor | None:
        """Descriptor for any entity attribute, by public or attribute name."""
        return self._by_key.get(normalize_field_name(name))

    def filterable_field(self, name: str) -> FieldDescriptor | None:
        descriptor = self.field(name)
        if descriptor is None or descriptor.name not in self._filterable:
            return None
        return descriptor

    def allowed_operators(self, name: str) -> frozenset[FilterOperator]:
        descriptor = self.field(name)
        if descriptor is None:
            return frozenset()
        return self._filterable.get(descriptor.name, frozenset())

    def sortable_field(self, name: str) -> FieldDescriptor | None:
        descriptor = self.field(name)
        if descriptor is None or descriptor.name not in self._sortable:
            return None
        return descriptor

    def searchable_field(self, name: str) -> FieldDescriptor | None:
        descriptor = self.field(name)
        if descriptor is None or descriptor.name not in self._searchable:
            return None
        return descriptor

    # -- internals -------------------------------------------------------

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise ConfigError(f"SearchConfiguration for {self.entity_name} is frozen")

    def _resolve_selector(self, selector: Any) -> FieldDescriptor:
        if isinstance(selector, str):
            descriptor = self._fields.get(selector) or self.field(selector)
            if descriptor is None:
                raise InvalidFieldSelectorError(self.entity_name, selector, "no such attribute")
            return descriptor

        if isinstance(selector, QueryableAttribute):
            prop = getattr(selector, "property", None)
            if not isinstance(prop, ColumnProperty) or len(prop.columns) != 1 or not isinstance(prop.columns[0], sa.Column):
                raise InvalidFieldSelectorError(self.entity_name, selector, "must be a plain mapped column")
            owner = getattr(selector, "class_", None)
            if owner is None or not (isinstance(self.entity, type) and issubclass(self.entity, owner)):
                raise InvalidFieldSelectorError(self.entity_name, selector, "belongs to a different entity")
            descriptor = self._fields.get(selector.key)
            if descriptor is None:
                raise InvalidFieldSelectorError(self.entity_name, selector, "no such attribute")
            return descriptor

        raise InvalidFieldSelectorError(self.entity_name, selector, "must be a direct attribute access")

    def __repr__(self) -> str:
        return (
            f"SearchConfiguration({self.entity_name}, searchable={list(self.searchable_fields)}, "
            f"filterable={sorted(self.filterable_fields)}, sortable={sorted(self.sortable_fields)})"
        )


__all__ = ["FieldDescriptor", "SearchConfiguration", "SearchWeight", "accessor_table", "normalize_field_name"]
