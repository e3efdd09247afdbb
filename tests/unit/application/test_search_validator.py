"""Unit tests for SearchRequestValidator."""
from __future__ import annotations

import pytest

from cms_query.application.search import (
    FilterCriteria,
    FilterOperator,
    SearchRequest,
    SearchRequestValidator,
    SortCriteria,
    ValidationResult,
)
from cms_query.kernel.errors import ValidationError
from searchdata import user_config


def _fields(result: ValidationResult) -> list[str]:
    return [error["field"] for error in result.errors]


class TestPagingAndTerm:
    def test_default_request_is_valid(self) -> None:
        result = SearchRequestValidator().validate(SearchRequest())
        assert result == ValidationResult.ok()

    def test_page_number_and_size_bounds(self) -> None:
        validator = SearchRequestValidator()
        assert _fields(validator.validate(SearchRequest(page_number=0))) == ["pageNumber"]
        assert _fields(validator.validate(SearchRequest(page_size=0))) == ["pageSize"]
        assert _fields(validator.validate(SearchRequest(page_size=101))) == ["pageSize"]
        assert validator.validate(SearchRequest(page_size=100)).valid

    def test_configuration_maximum_takes_precedence(self) -> None:
        config = user_config().set_page_size(10, 20)
        result = SearchRequestValidator().validate(SearchRequest(page_size=30), config)
        assert result.errors[0]["message"] == "Page size must not exceed 20"

    def test_term_length(self) -> None:
        result = SearchRequestValidator().validate(SearchRequest(search_term="x" * 201))
        assert _fields(result) == ["searchTerm"]

    @pytest.mark.parametrize("term", ["john; drop table", "a -- b", "/* x", "<SCRIPT>", "exec xp_cmd"])
    def test_dangerous_terms_rejected(self, term: str) -> None:
        result = SearchRequestValidator().validate(SearchRequest(search_term=term))
        assert not result.valid
        assert result.errors[0]["message"] == "Search term contains invalid characters"

    def test_min_relevance_score_range(self) -> None:
        validator = SearchRequestValidator()
        assert not validator.validate(SearchRequest(min_relevance_score=1.5)).valid
        assert not validator.validate(SearchRequest(min_relevance_score=-0.1)).valid
        assert validator.validate(SearchRequest(min_relevance_score=0.0)).valid


class TestFiltersAndSorts:
    def test_field_names_must_be_identifiers(self) -> None:
        request = SearchRequest(
            filters=[FilterCriteria("1abc", value="x"), FilterCriteria("", value="x")],
            sorts=[SortCriteria("name;--")],
            search_fields=["ok", "bad field"],
        )
        result = SearchRequestValidator().validate(request)
        assert _fields(result) == ["searchFields[1]", "filters[0].field", "filters[1].field", "sorts[0].field"]

    def test_field_name_length(self) -> None:
        result = SearchRequestValidator().validate(SearchRequest(sorts=[SortCriteria("a" * 101)]))
        assert "must not exceed 100" in result.errors[0]["message"]

    def test_value_required_except_null_checks(self) -> None:
        validator = SearchRequestValidator()
        missing = validator.validate(SearchRequest(filters=[FilterCriteria("age", FilterOperator.GREATER_THAN)]))
        assert _fields(missing) == ["filters[0].value"]
        assert validator.validate(SearchRequest(filters=[FilterCriteria("age", FilterOperator.IS_NULL)])).valid

    def test_in_requires_collection(self) -> None:
        result = SearchRequestValidator().validate(
            SearchRequest(filters=[FilterCriteria("role", FilterOperator.IN, "Admin")])
        )
        assert result.errors[0]["message"] == "Filter value must be a collection for IN/NOT IN operators"

    def test_between_requires_two_members(self) -> None:
        validator = SearchRequestValidator()
        bad = validator.validate(SearchRequest(filters=[FilterCriteria("age", FilterOperator.BETWEEN, [1, 2, 3])]))
        assert _fields(bad) == ["filters[0].value"]
        good = validator.validate(SearchRequest(filters=[FilterCriteria("age", FilterOperator.BETWEEN, [1, 2])]))
        assert good.valid

    def test_unknown_fields_pass_without_configuration(self) -> None:
        request = SearchRequest(filters=[FilterCriteria("password", value="x")], sorts=[SortCriteria("password")])
        assert SearchRequestValidator().validate(request).valid

    def test_strict_mode_checks_allow_lists(self) -> None:
        request = SearchRequest(
            filters=[
                FilterCriteria("password", value="x"),
                FilterCriteria("is_active", FilterOperator.GREATER_THAN, True),
                FilterCriteria("Role", value="Admin"),
            ],
            sorts=[SortCriteria("email")],
        )
        result = SearchRequestValidator().validate(request, user_config())
        assert _fields(result) == ["filters[0].field", "filters[1].operator", "sorts[0].field"]

    def test_all_errors_are_collected(self) -> None:
        request = SearchRequest(page_number=0, page_size=0, search_term="a;b", min_relevance_score=2)
        result = SearchRequestValidator().validate(request)
        assert _fields(result) == ["pageNumber", "pageSize", "searchTerm", "minRelevanceScore"]


class TestValidateOrRaise:
    def test_raises_with_error_list(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SearchRequestValidator().validate_or_raise(SearchRequest(page_number=0))
        assert exc_info.value.errors == [{"field": "pageNumber", "message": "Page number must be greater than 0"}]

    def test_valid_request_passes(self) -> None:
        SearchRequestValidator().validate_or_raise(SearchRequest(search_term="john"))
