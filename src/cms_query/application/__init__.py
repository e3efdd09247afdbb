"""Application – search engine building blocks (store-agnostic)."""

from cms_query.application.pagination import PageRequest
from cms_query.application.search import (
    CancellationToken,
    FilterCriteria,
    FilterOperator,
    InMemorySearchStore,
    LogicalOperator,
    SearchConfiguration,
    SearchRequest,
    SearchRequestValidator,
    SearchResult,
    SearchService,
    SortCriteria,
    SortDirection,
)

__all__ = [
    "CancellationToken",
    "FilterCriteria",
    "FilterOperator",
    "InMemorySearchStore",
    "LogicalOperator",
    "PageRequest",
    "SearchConfiguration",
    "SearchRequest",
    "SearchRequestValidator",
    "SearchResult",
    "SearchService",
    "SortCriteria",
    "SortDirection",
]
