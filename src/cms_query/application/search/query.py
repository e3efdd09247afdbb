"""Application search – SearchRequest, FilterCriteria and SortCriteria value objects."""
from __future__ import annotations

import dataclasses
import datetime
import decimal
import enum
import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from cms_query.kernel.errors import ValidationError


def _parse_enum(enum_cls: type[enum.Enum], raw: Any, aliases: Mapping[str, Any] | None = None) -> Any:
    """Resolve *raw* against an enum by value, member name or ordinal (case-insensitive)."""
    if isinstance(raw, enum_cls):
        return raw
    if isinstance(raw, int) and not isinstance(raw, bool):
        members = list(enum_cls)
        return members[raw] if 0 <= raw < len(members) else None
    if not isinstance(raw, str):
        return None
    key = raw.strip().replace("_", "").lower()
    if aliases and key in aliases:
        return aliases[key]
    for member in enum_cls:
        if key in (str(member.value).lower(), member.name.replace("_", "").lower()):
            return member
    return None


class FilterOperator(str, enum.Enum):
    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    CONTAINS = "Contains"
    NOT_CONTAINS = "NotContains"
    STARTS_WITH = "StartsWith"
    ENDS_WITH = "EndsWith"
    GREATER_THAN = "GreaterThan"
    GREATER_THAN_OR_EQUAL = "GreaterThanOrEqual"
    LESS_THAN = "LessThan"
    LESS_THAN_OR_EQUAL = "LessThanOrEqual"
    IN = "In"
    NOT_IN = "NotIn"
    IS_NULL = "IsNull"
    IS_NOT_NULL = "IsNotNull"
    BETWEEN = "Between"

    @classmethod
    def parse(cls, raw: Any) -> "FilterOperator | None":
        return _parse_enum(cls, raw)

    @property
    def requires_value(self) -> bool:
        return self not in (FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL)


class LogicalOperator(str, enum.Enum):
    AND = "And"
    OR = "Or"

    @classmethod
    def parse(cls, raw: Any) -> "LogicalOperator | None":
        return _parse_enum(cls, raw, {"&&": cls.AND, "||": cls.OR})


class SortDirection(str, enum.Enum):
    ASCENDING = "Ascending"
    DESCENDING = "Descending"

    @classmethod
    def parse(cls, raw: Any) -> "SortDirection | None":
        return _parse_enum(cls, raw, {"asc": cls.ASCENDING, "desc": cls.DESCENDING})


@dataclasses.dataclass(frozen=True)
class FilterCriteria:
    """A single field-level filter.

    ``logical_operator`` says how this filter joins the predicate accumulated
    from the filters before it, not the one after it.
    """

    field: str
    operator: FilterOperator = FilterOperator.EQUALS
    value: Any = None
    logical_operator: LogicalOperator = LogicalOperator.AND

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "FilterCriteria | None":
        """Parse the wire form; returns ``None`` when the operator is not recognised."""
        operator = FilterOperator.parse(_pick(payload, "operator", default="Equals"))
        if operator is None:
            return None
        logical = LogicalOperator.parse(_pick(payload, "logicalOperator", "logical_operator", default="And"))
        return cls(
            field=str(_pick(payload, "field", default="") or ""),
            operator=operator,
            value=_pick(payload, "value"),
            logical_operator=logical or LogicalOperator.AND,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "operator": self.operator.value,
            "value": to_jsonable(self.value),
            "logicalOperator": self.logical_operator.value,
        }


@dataclasses.dataclass(frozen=True)
class SortCriteria:
    field: str
    direction: SortDirection = SortDirection.ASCENDING

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESCENDING

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SortCriteria":
        direction = SortDirection.parse(_pick(payload, "direction", default="Ascending"))
        return cls(
            field=str(_pick(payload, "field", default="") or ""),
            direction=direction or SortDirection.ASCENDING,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "direction": self.direction.value}


@dataclasses.dataclass(frozen=True)
class SearchRequest:
    """Inbound search request.

    Filters and sorts are kept in request order; sequences passed in are
    normalised to tuples so the request stays immutable through the pipeline.
    """

    page_number: int = 1
    page_size: int = 10
    search_term: str | None = None
    search_fields: tuple[str, ...] | None = None
    filters: tuple[FilterCriteria, ...] = ()
    sorts: tuple[SortCriteria, ...] = ()
    include_deleted: bool = False
    min_relevance_score: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters or ()))
        object.__setattr__(self, "sorts", tuple(self.sorts or ()))
        if self.search_fields is not None:
            object.__setattr__(self, "search_fields", tuple(self.search_fields))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SearchRequest":
        """Parse the JSON body of a search call (camelCase or snake_case keys).

        Raises :class:`ValidationError` when a scalar has the wrong shape
        (e.g. a non-numeric page number). Filters with an unknown operator
        are dropped, in line with the engine's lenient handling of filters.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError("Search request body must be a JSON object")
        errors: list[dict[str, Any]] = []

        page_number = _int_field(payload, errors, "pageNumber", "page_number", default=1)
        page_size = _int_field(payload, errors, "pageSize", "page_size", default=10)

        term = _pick(payload, "searchTerm", "search_term")
        if term is not None and not isinstance(term, str):
            errors.append({"field": "searchTerm", "message": "Search term must be a string"})
            term = None

        raw_fields = _pick(payload, "searchFields", "search_fields")
        search_fields: tuple[str, ...] | None = None
        if raw_fields is not None:
            if isinstance(raw_fields, str) or not isinstance(raw_fields, Sequence):
                errors.append({"field": "searchFields", "message": "Search fields must be a list"})
            else:
                search_fields = tuple(str(f) for f in raw_fields)

        min_score = _pick(payload, "minRelevanceScore", "min_relevance_score")
        if min_score is not None:
            try:
                min_score = float(min_score)
            except (TypeError, ValueError, OverflowError):
                errors.append({"field": "minRelevanceScore", "message": "Minimum relevance score must be a number"})
                min_score = None

        include_deleted = _pick(payload, "includeDeleted", "include_deleted")
        if include_deleted is None:
            include_deleted = False
        elif not isinstance(include_deleted, bool):
            errors.append({"field": "includeDeleted", "message": "includeDeleted must be true or false"})
            include_deleted = False

        filters = tuple(
            f for f in (FilterCriteria.from_dict(item) for item in _list_of_objects(payload, errors, "filters"))
            if f is not None
        )
        sorts = tuple(SortCriteria.from_dict(item) for item in _list_of_objects(payload, errors, "sorts"))

        if errors:
            raise ValidationError("Malformed search request", errors=errors)

        return cls(
            page_number=page_number,
            page_size=page_size,
            search_term=term,
            search_fields=search_fields,
            filters=filters,
            sorts=sorts,
            include_deleted=include_deleted,
            min_relevance_score=min_score,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "pageNumber": self.page_number,
            "pageSize": self.page_size,
            "searchTerm": self.search_term,
            "searchFields": list(self.search_fields) if self.search_fields is not None else None,
            "minRelevanceScore": self.min_relevance_score,
            "filters": [f.to_dict() for f in self.filters],
            "sorts": [s.to_dict() for s in self.sorts],
            "includeDeleted": self.include_deleted,
        }


# ---------------------------------------------------------------------------
# Wire helpers
# ---------------------------------------------------------------------------


def to_jsonable(value: Any) -> Any:
    """Convert filter values and payload attributes into JSON-safe primitives."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (uuid.UUID, decimal.Decimal)):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return default


def _int_field(
    payload: Mapping[str, Any], errors: list[dict[str, Any]], *keys: str, default: int
) -> int:
    raw = _pick(payload, *keys, default=default)
    if raw is None:
        return default
    if isinstance(raw, bool):
        errors.append({"field": keys[0], "message": f"{keys[0]} must be an integer"})
        return default
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        errors.append({"field": keys[0], "message": f"{keys[0]} must be an integer"})
        return default


def _list_of_objects(payload: Mapping[str, Any], errors: list[dict[str, Any]], key: str) -> list[Mapping[str, Any]]:
    raw = payload.get(key)
    if raw is None:
        return []
    if isinstance(raw, (str, Mapping)) or not isinstance(raw, Sequence):
        errors.append({"field": key, "message": f"{key} must be a list"})
        return []
    items = [item for item in raw if isinstance(item, Mapping)]
    if len(items) != len(raw):
        errors.append({"field": key, "message": f"every entry of {key} must be an object"})
    return items


__all__ = [
    "FilterCriteria",
    "FilterOperator",
    "LogicalOperator",
    "SearchRequest",
    "SortCriteria",
    "SortDirection",
    "to_jsonable",
]
