"""Application search – SearchRequestValidator.

Boundary validation runs before the engine and, unlike the engine, rejects
input outright: out-of-range paging, over-long or hostile search terms,
malformed field names and operator/value shape mismatches. All failures are
collected so one response lists every problem.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from cms_query.application.search.configuration import SearchConfiguration
from cms_query.application.search.query import FilterCriteria, FilterOperator, SearchRequest, SortCriteria
from cms_query.application.search.sanitizer import MAX_SEARCH_TERM_LENGTH
from cms_query.kernel.errors import ValidationError

DANGEROUS_SUBSTRINGS = (";", "--", "/*", "*/", "xp_", "sp_", "<script", "<iframe")
MAX_FIELD_NAME_LENGTH = 100

_IDENTIFIER = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
_COLLECTION_TYPES = (list, tuple, set, frozenset)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True, errors=())

    @classmethod
    def fail(cls, *errors: dict[str, Any]) -> "ValidationResult":
        return cls(valid=False, errors=errors)


class SearchRequestValidator:
    """Validates inbound search requests.

    Pass a :class:`SearchConfiguration` to :meth:`validate` to additionally
    reject filters and sorts on fields outside that entity's allow-lists;
    without one, only the request's shape is checked and unknown fields are
    left for the engine to drop.
    """

    def __init__(
        self,
        max_page_size: int = 100,
        max_term_length: int = MAX_SEARCH_TERM_LENGTH,
    ) -> None:
        self.max_page_size = max_page_size
        self.max_term_length = max_term_length

    def validate(
        self, request: SearchRequest, configuration: SearchConfiguration[Any] | None = None
    ) -> ValidationResult:
        errors: list[dict[str, Any]] = []
        max_page_size = configuration.max_page_size if configuration is not None else self.max_page_size

        if request.page_number <= 0:
            errors.append(_error("pageNumber", "Page number must be greater than 0"))
        if request.page_size <= 0:
            errors.append(_error("pageSize", "Page size must be greater than 0"))
        elif request.page_size > max_page_size:
            errors.append(_error("pageSize", f"Page size must not exceed {max_page_size}"))

        term = request.search_term
        if term is not None and term.strip():
            if len(term) > self.max_term_length:
                errors.append(
                    _error("searchTerm", f"Search term must not exceed {self.max_term_length} characters")
                )
            lowered = term.lower()
            if any(dangerous in lowered for dangerous in DANGEROUS_SUBSTRINGS):
                errors.append(_error("searchTerm", "Search term contains invalid characters"))

        if request.min_relevance_score is not None and not 0.0 <= request.min_relevance_score <= 1.0:
            errors.append(_error("minRelevanceScore", "Minimum relevance score must be between 0.0 and 1.0"))

        for index, name in enumerate(request.search_fields or ()):
            errors.extend(_field_name_errors(f"searchFields[{index}]", name, "Search field"))

        for index, criteria in enumerate(request.filters):
            errors.extend(self._filter_errors(f"filters[{index}]", criteria, configuration))

        for index, sort in enumerate(request.sorts):
            errors.extend(self._sort_errors(f"sorts[{index}]", sort, configuration))

        if errors:
            return ValidationResult.fail(*errors)
        return ValidationResult.ok()

    def validate_or_raise(
        self, request: SearchRequest, configuration: SearchConfiguration[Any] | None = None
    ) -> None:
        result = self.validate(request, configuration)
        if not result.valid:
            raise ValidationError("Invalid search request", errors=list(result.errors))

    def _filter_errors(
        self, path: str, criteria: FilterCriteria, configuration: SearchConfiguration[Any] | None
    ) -> list[dict[str, Any]]:
        errors = _field_name_errors(f"{path}.field", criteria.field, "Filter field")
        value = criteria.value

        if criteria.operator.requires_value and value is None:
            errors.append(_error(f"{path}.value", "Filter value is required for this operator"))
        elif criteria.operator in (FilterOperator.IN, FilterOperator.NOT_IN):
            if not isinstance(value, _COLLECTION_TYPES):
                errors.append(_error(f"{path}.value", "Filter value must be a collection for IN/NOT IN operators"))
        elif criteria.operator is FilterOperator.BETWEEN:
            if not isinstance(value, _COLLECTION_TYPES) or len(value) != 2:
                errors.append(
                    _error(
                        f"{path}.value",
                        "Filter value must be a collection with exactly 2 elements for BETWEEN operator",
                    )
                )

        if configuration is not None and not errors:
            if configuration.filterable_field(criteria.field) is None:
                errors.append(_error(f"{path}.field", f"Field '{criteria.field}' is not filterable"))
            elif criteria.operator not in configuration.allowed_operators(criteria.field):
                errors.append(
                    _error(
                        f"{path}.operator",
                        f"Operator '{criteria.operator.value}' is not allowed for field '{criteria.field}'",
                    )
                )
        return errors

    def _sort_errors(
        self, path: str, sort: SortCriteria, configuration: SearchConfiguration[Any] | None
    ) -> list[dict[str, Any]]:
        errors = _field_name_errors(f"{path}.field", sort.field, "Sort field")
        if configuration is not None and not errors and configuration.sortable_field(sort.field) is None:
            errors.append(_error(f"{path}.field", f"Field '{sort.field}' is not sortable"))
        return errors


def _field_name_errors(path: str, name: str, label: str) -> list[dict[str, Any]]:
    if not name:
        return [_error(path, f"{label} name is required")]
    if len(name) > MAX_FIELD_NAME_LENGTH:
        return [_error(path, f"{label} name must not exceed {MAX_FIELD_NAME_LENGTH} characters")]
    if not _IDENTIFIER.match(name):
        return [
            _error(
                path,
                f"{label} name must be a valid identifier "
                "(letters, numbers, underscores only, must start with a letter)",
            )
        ]
    return []


def _error(field: str, message: str) -> dict[str, Any]:
    return {"field": field, "message": message}


__all__ = ["DANGEROUS_SUBSTRINGS", "SearchRequestValidator", "ValidationResult"]
