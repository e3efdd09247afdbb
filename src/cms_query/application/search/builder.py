"""Application search – PredicateBuilder.

Compiles an ordered list of :class:`FilterCriteria` into one predicate tree.

Filters are folded strictly left to right: the first usable filter seeds the
accumulator and each later one joins it with *its own* logical operator, with
no AND-before-OR precedence. ``[A, OR B, AND C]`` therefore means
``(A OR B) AND C``.

Filters that cannot be applied (field not filterable, operator not allowed
for the field, value not convertible, malformed In/Between payload) are
dropped one by one and logged at DEBUG; they never fail the search.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from cms_query.application.search.configuration import FieldDescriptor, SearchConfiguration
from cms_query.application.search.predicates import (
    Between,
    Compare,
    ComparisonOperator,
    In,
    IsNull,
    Predicate,
    TextMatch,
    TextMode,
)
from cms_query.application.search.query import FilterCriteria, FilterOperator, LogicalOperator
from cms_query.application.search.values import UNCONVERTIBLE, convert_value
from cms_query.observability.logging import get_logger

_COMPARISONS = {
    FilterOperator.GREATER_THAN: ComparisonOperator.GT,
    FilterOperator.GREATER_THAN_OR_EQUAL: ComparisonOperator.GTE,
    FilterOperator.LESS_THAN: ComparisonOperator.LT,
    FilterOperator.LESS_THAN_OR_EQUAL: ComparisonOperator.LTE,
}

_TEXT_MODES = {
    FilterOperator.CONTAINS: TextMode.CONTAINS,
    FilterOperator.STARTS_WITH: TextMode.STARTS_WITH,
    FilterOperator.ENDS_WITH: TextMode.ENDS_WITH,
}

_COLLECTION_TYPES = (list, tuple, set, frozenset)


class PredicateBuilder:
    """Turn request filters into a predicate over the configured entity."""

    def __init__(self, configuration: SearchConfiguration[Any]) -> None:
        self._configuration = configuration
        self._log = get_logger(__name__, entity=configuration.entity_name)

    def build(self, filters: Sequence[FilterCriteria]) -> Predicate | None:
        """Return the combined predicate, or ``None`` when no filter was usable."""
        accumulated: Predicate | None = None
        for criteria in filters:
            predicate = self.build_one(criteria)
            if predicate is None:
                continue
            if accumulated is None:
                accumulated = predicate
            elif criteria.logical_operator is LogicalOperator.OR:
                accumulated = accumulated | predicate
            else:
                accumulated = accumulated & predicate
        return accumulated

    def build_one(self, criteria: FilterCriteria) -> Predicate | None:
        field = self._configuration.filterable_field(criteria.field)
        if field is None:
            self._skip(criteria, "field is not filterable")
            return None
        if criteria.operator not in self._configuration.allowed_operators(field.name):
            self._skip(criteria, "operator not allowed for field")
            return None

        try:
            predicate = self._dispatch(field, criteria.operator, criteria.value)
        except Exception as exc:  # one bad filter must not abort the search
            self._skip(criteria, "predicate construction failed", error=repr(exc))
            return None

        if predicate is None:
            self._skip(criteria, "value not applicable")
        return predicate

    # -- operators -------------------------------------------------------

    def _dispatch(self, field: FieldDescriptor, operator: FilterOperator, value: Any) -> Predicate | None:
        match operator:
            case FilterOperator.EQUALS:
                return self._equals(field, value)
            case FilterOperator.NOT_EQUALS:
                equals = self._equals(field, value)
                return None if equals is None else ~equals
            case FilterOperator.CONTAINS | FilterOperator.STARTS_WITH | FilterOperator.ENDS_WITH:
                return self._text(field, _TEXT_MODES[operator], value)
            case FilterOperator.NOT_CONTAINS:
                contains = self._text(field, TextMode.CONTAINS, value)
                return None if contains is None else ~contains
            case (
                FilterOperator.GREATER_THAN
                | FilterOperator.GREATER_THAN_OR_EQUAL
                | FilterOperator.LESS_THAN
                | FilterOperator.LESS_THAN_OR_EQUAL
            ):
                return self._comparison(field, _COMPARISONS[operator], value)
            case FilterOperator.IN:
                return self._in(field, value)
            case FilterOperator.NOT_IN:
                members = self._in(field, value)
                return None if members is None else ~members
            case FilterOperator.IS_NULL:
                return IsNull(field)
            case FilterOperator.IS_NOT_NULL:
                return ~IsNull(field)
            case FilterOperator.BETWEEN:
                return self._between(field, value)
        return None

    def _equals(self, field: FieldDescriptor, value: Any) -> Predicate | None:
        if value is None:
            return IsNull(field) if field.nullable else None
        converted = convert_value(value, field)
        if converted is UNCONVERTIBLE:
            return None
        if field.is_string:
            return Compare(field, ComparisonOperator.EQ, converted.lower(), case_insensitive=True)
        return Compare(field, ComparisonOperator.EQ, converted)

    def _text(self, field: FieldDescriptor, mode: TextMode, value: Any) -> Predicate | None:
        if not field.is_string or value is None:
            return None
        converted = convert_value(value, field)
        if converted is UNCONVERTIBLE:
            return None
        return TextMatch(field, mode, converted.lower())

    def _comparison(self, field: FieldDescriptor, op: ComparisonOperator, value: Any) -> Predicate | None:
        converted = convert_value(value, field)
        if converted is UNCONVERTIBLE:
            return None
        return Compare(field, op, converted)

    def _in(self, field: FieldDescriptor, value: Any) -> Predicate | None:
        members = _convert_members(field, value)
        if not members:
            return None
        return In(field, tuple(members))

    def _between(self, field: FieldDescriptor, value: Any) -> Predicate | None:
        bounds = _convert_members(field, value)
        if len(bounds) != 2:
            return None
        return Between(field, bounds[0], bounds[1])

    def _skip(self, criteria: FilterCriteria, reason: str, **extra: Any) -> None:
        self._log.debug(
            "search.filter_skipped",
            field=criteria.field,
            operator=criteria.operator.value,
            reason=reason,
            **extra,
        )


def _convert_members(field: FieldDescriptor, value: Any) -> list[Any]:
    """Convert every element of a collection value, dropping the ones that fail."""
    if not isinstance(value, _COLLECTION_TYPES):
        return []
    converted = (convert_value(item, field) for item in value)
    return [item for item in converted if item is not UNCONVERTIBLE]


__all__ = ["PredicateBuilder"]
