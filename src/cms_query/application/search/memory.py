"""Application search – InMemorySearchStore.

Runs a :class:`SearchPlan` over a list of Python objects. Useful for tests
and for small, already-loaded collections. Semantics follow the SQL store:
three-valued filter logic, PostgreSQL NULL ordering (last when ascending,
first when descending) and relevance-first ordering on the full-text path.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from cms_query.application.search.store import ScoredRow, SearchPlan

T = TypeVar("T")


class InMemorySearchStore(Generic[T]):
    def __init__(self, rows: Iterable[T]) -> None:
        self._rows = list(rows)

    async def count(self, plan: SearchPlan) -> int:
        return len(self._matching(plan))

    async def fetch(self, plan: SearchPlan) -> list[ScoredRow[T]]:
        matching = self._matching(plan)
        for key in reversed(plan.sort.keys):
            matching.sort(key=lambda s, f=key.field: _null_last(f.read(s.row)), reverse=key.descending)
        if plan.sort.relevance_first:
            matching.sort(key=lambda s: s.score or 0.0, reverse=True)

        page = matching[plan.page.offset : plan.page.offset + plan.page.limit]
        if plan.text_query is None:
            return page
        return [ScoredRow(s.row, s.score, plan.text_query.highlight(s.row)) for s in page]

    async def facets(self, plan: SearchPlan) -> dict[str, list[tuple[Any, int]]]:
        matching = self._matching(plan)
        result: dict[str, list[tuple[Any, int]]] = {}
        for field in plan.facet_fields:
            counts = Counter(field.read(s.row) for s in matching)
            result[field.name] = list(counts.items())
        return result

    def _matching(self, plan: SearchPlan) -> list[ScoredRow[T]]:
        rows = self._rows
        if plan.predicate is not None:
            rows = [row for row in rows if plan.predicate.is_satisfied_by(row)]

        text_query = plan.text_query
        if text_query is None:
            return [ScoredRow(row) for row in rows]

        scored = [ScoredRow(row, text_query.rank(row)) for row in rows if text_query.matches(row)]
        if plan.min_relevance_score is not None:
            scored = [s for s in scored if (s.score or 0.0) >= plan.min_relevance_score]
        return scored


def _null_last(value: Any) -> tuple[bool, Any]:
    # (True, None) sorts after every real value; reversed it sorts first
    return (value is None, value)


__all__ = ["InMemorySearchStore"]
