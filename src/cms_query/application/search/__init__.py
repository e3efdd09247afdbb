"""Application search – declarative query engine."""
from cms_query.application.search.builder import PredicateBuilder
from cms_query.application.search.cancellation import CancellationToken
from cms_query.application.search.configuration import FieldDescriptor, SearchConfiguration, SearchWeight
from cms_query.application.search.fulltext import FullTextQuery, WebSearchQuery
from cms_query.application.search.memory import InMemorySearchStore
from cms_query.application.search.predicates import (
    And,
    Between,
    Compare,
    ComparisonOperator,
    In,
    IsNull,
    Not,
    Or,
    Predicate,
    TextMatch,
    TextMode,
)
from cms_query.application.search.query import (
    FilterCriteria,
    FilterOperator,
    LogicalOperator,
    SearchRequest,
    SortCriteria,
    SortDirection,
)
from cms_query.application.search.result import FacetValue, SearchResult, SearchResultItem
from cms_query.application.search.sanitizer import sanitize_request, sanitize_search_term
from cms_query.application.search.service import SearchEngine, SearchService
from cms_query.application.search.sorting import SortKey, SortSpec, compose_sort
from cms_query.application.search.store import ScoredRow, SearchPlan, SearchStore
from cms_query.application.search.validator import SearchRequestValidator, ValidationResult
from cms_query.application.search.values import UNCONVERTIBLE, convert_value

__all__ = [
    "UNCONVERTIBLE",
    "And",
    "Between",
    "CancellationToken",
    "Compare",
    "ComparisonOperator",
    "FacetValue",
    "FieldDescriptor",
    "FilterCriteria",
    "FilterOperator",
    "FullTextQuery",
    "In",
    "InMemorySearchStore",
    "IsNull",
    "LogicalOperator",
    "Not",
    "Or",
    "Predicate",
    "PredicateBuilder",
    "ScoredRow",
    "SearchConfiguration",
    "SearchEngine",
    "SearchPlan",
    "SearchRequest",
    "SearchRequestValidator",
    "SearchResult",
    "SearchResultItem",
    "SearchService",
    "SearchStore",
    "SearchWeight",
    "SortCriteria",
    "SortDirection",
    "SortKey",
    "SortSpec",
    "TextMatch",
    "TextMode",
    "ValidationResult",
    "WebSearchQuery",
    "compose_sort",
    "convert_value",
    "sanitize_request",
    "sanitize_search_term",
]
