"""Application search – SearchStore port.

The search service decides *what* to query and hands a :class:`SearchPlan`
to a store, which decides *how*. A store answers three questions about the
plan: how many rows match, which rows make up the requested page (with their
relevance score and highlights when the plan carries a text query), and how
matching rows distribute over each facet field.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from cms_query.application.pagination import PageRequest
from cms_query.application.search.configuration import FieldDescriptor
from cms_query.application.search.fulltext import FullTextQuery
from cms_query.application.search.predicates import Predicate
from cms_query.application.search.sorting import SortSpec

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@dataclasses.dataclass(frozen=True)
class SearchPlan:
    """Everything a store needs to run one search.

    ``predicate`` covers the structured filters (soft-delete included);
    ``text_query`` is set only on the full-text path, where rows must also
    match it and, with ``min_relevance_score``, rank at least that high.
    """

    page: PageRequest
    predicate: Predicate | None = None
    text_query: FullTextQuery | None = None
    min_relevance_score: float | None = None
    sort: SortSpec = dataclasses.field(default_factory=SortSpec)
    facet_fields: tuple[FieldDescriptor, ...] = ()

    @property
    def full_text(self) -> bool:
        return self.text_query is not None


@dataclasses.dataclass(frozen=True)
class ScoredRow(Generic[T]):
    row: T
    score: float | None = None
    highlights: dict[str, str] | None = None


@runtime_checkable
class SearchStore(Protocol[T_co]):
    async def count(self, plan: SearchPlan) -> int: ...
    async def fetch(self, plan: SearchPlan) -> list[ScoredRow[Any]]: ...
    async def facets(self, plan: SearchPlan) -> dict[str, list[tuple[Any, int]]]: ...


__all__ = ["ScoredRow", "SearchPlan", "SearchStore"]
