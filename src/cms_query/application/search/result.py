"""Application search – SearchResult generic container."""
from __future__ import annotations

import dataclasses
import math
from typing import Any, Callable, Generic, TypeVar

from cms_query.application.search.query import FilterCriteria, SortCriteria, to_jsonable

T = TypeVar("T")
U = TypeVar("U")


@dataclasses.dataclass(frozen=True)
class FacetValue:
    """One facet bucket: a distinct field value and how many matching rows carry it."""
    value: str
    count: int
    is_selected: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "count": self.count, "isSelected": self.is_selected}


@dataclasses.dataclass(frozen=True)
class SearchResultItem(Generic[T]):
    data: T
    relevance_score: float | None = None
    highlights: dict[str, str] | None = None


@dataclasses.dataclass(frozen=True)
class SearchResult(Generic[T]):
    """One page of search results plus the metadata needed to page further.

    ``total_count`` is the number of rows that satisfied every filter (and the
    full-text match when it was active) before pagination. ``applied_*``
    echo the request as sent, after term sanitisation, so callers can see
    exactly what was asked for.
    """

    items: list[SearchResultItem[T]]
    total_count: int
    page_number: int
    page_size: int
    execution_time_ms: int = 0
    applied_filters: tuple[FilterCriteria, ...] = ()
    applied_sorts: tuple[SortCriteria, ...] = ()
    search_term: str | None = None
    facets: dict[str, list[FacetValue]] | None = None

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0 or self.total_count <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages

    def map(self, fn: Callable[[T], U]) -> "SearchResult[U]":
        """Return a new :class:`SearchResult` with each payload transformed by *fn*."""
        return dataclasses.replace(  # type: ignore[return-value]
            self,
            items=[dataclasses.replace(item, data=fn(item.data)) for item in self.items],
        )

    def to_dict(self, serialize: Callable[[T], Any] | None = None) -> dict[str, Any]:
        """Render the outbound JSON body.

        *serialize* turns each payload into JSON-safe data; when omitted,
        dataclass payloads go through :func:`dataclasses.asdict` and anything
        else is passed through as-is.
        """
        encode = serialize or _default_serialize
        body: dict[str, Any] = {
            "items": [
                {
                    "data": encode(item.data),
                    "relevanceScore": item.relevance_score,
                    "highlights": item.highlights,
                }
                for item in self.items
            ],
            "totalCount": self.total_count,
            "pageNumber": self.page_number,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            "hasPreviousPage": self.has_previous_page,
            "hasNextPage": self.has_next_page,
            "executionTimeMs": self.execution_time_ms,
            "appliedFilters": [f.to_dict() for f in self.applied_filters],
            "appliedSorts": [s.to_dict() for s in self.applied_sorts],
            "searchTerm": self.search_term,
        }
        if self.facets is not None:
            body["facets"] = {name: [b.to_dict() for b in buckets] for name, buckets in self.facets.items()}
        return body


def _default_serialize(data: Any) -> Any:
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return to_jsonable(dataclasses.asdict(data))
    return to_jsonable(data)


__all__ = ["FacetValue", "SearchResult", "SearchResultItem"]
