"""SQLAlchemy adapter – SqlAlchemySearchStore."""
from __future__ import annotations

from typing import Any, Generic, TypeVar

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from cms_query.adapters.sqlalchemy.fulltext import headline, match_clause, rank_expression, search_vector, ts_query
from cms_query.adapters.sqlalchemy.translator import PredicateTranslator
from cms_query.application.search.store import ScoredRow, SearchPlan

T = TypeVar("T")

RELEVANCE_LABEL = "relevance_score"


class SqlAlchemySearchStore(Generic[T]):
    """Runs search plans as SQL through an :class:`AsyncSession`.

    *base_query* is the caller's starting ``select(model)``, already carrying
    any joins, tenant scoping or eager-load options; the store only adds
    WHERE, ORDER BY, OFFSET and LIMIT. Database errors propagate unchanged.
    """

    def __init__(self, session: AsyncSession, model: type[T], base_query: sa.Select[Any] | None = None) -> None:
        self._session = session
        self._model = model
        self._base = base_query if base_query is not None else sa.select(model)
        self._translator = PredicateTranslator(model)

    def filtered(self, plan: SearchPlan) -> sa.Select[Any]:
        """The base query narrowed by every filter and, when active, the text match."""
        stmt = self._base
        if plan.predicate is not None:
            stmt = stmt.where(self._translator.to_clause(plan.predicate))
        if plan.text_query is not None:
            vector = search_vector(self._model, plan.text_query)
            tsquery = ts_query(plan.text_query)
            stmt = stmt.where(match_clause(vector, tsquery))
            if plan.min_relevance_score is not None:
                stmt = stmt.where(rank_expression(vector, tsquery) >= plan.min_relevance_score)
        return stmt

    def page_statement(self, plan: SearchPlan) -> sa.Select[Any]:
        stmt = self.filtered(plan)
        order: list[Any] = []
        if plan.text_query is not None:
            vector = search_vector(self._model, plan.text_query)
            tsquery = ts_query(plan.text_query)
            rank = rank_expression(vector, tsquery).label(RELEVANCE_LABEL)
            stmt = stmt.add_columns(rank)
            for field in plan.text_query.highlight_fields:
                stmt = stmt.add_columns(headline(self._model, field, plan.text_query, tsquery).label(f"headline_{field.name}"))
            if plan.sort.relevance_first:
                order.append(rank.desc())
        order.extend(self._translator.order_by(plan.sort.keys))
        if order:
            stmt = stmt.order_by(None).order_by(*order)
        return stmt.offset(plan.page.offset).limit(plan.page.limit)

    async def count(self, plan: SearchPlan) -> int:
        subquery = self.filtered(plan).order_by(None).subquery()
        result = await self._session.execute(sa.select(sa.func.count()).select_from(subquery))
        return int(result.scalar_one())

    async def fetch(self, plan: SearchPlan) -> list[ScoredRow[T]]:
        result = await self._session.execute(self.page_statement(plan))
        rows: list[ScoredRow[T]] = []
        text_query = plan.text_query
        for record in result.all():
            if text_query is None:
                rows.append(ScoredRow(record[0]))
                continue
            highlights = None
            if text_query.highlight_fields:
                highlights = {
                    field.name: record[2 + index] or ""
                    for index, field in enumerate(text_query.highlight_fields)
                }
            rows.append(ScoredRow(record[0], float(record[1] or 0.0), highlights))
        return rows

    async def facets(self, plan: SearchPlan) -> dict[str, list[tuple[Any, int]]]:
        buckets: dict[str, list[tuple[Any, int]]] = {}
        filtered = self.filtered(plan).order_by(None)
        for field in plan.facet_fields:
            column = self._translator.column(field)
            stmt = filtered.with_only_columns(column, sa.func.count(), maintain_column_froms=True).group_by(column)
            result = await self._session.execute(stmt)
            buckets[field.name] = [(value, int(count)) for value, count in result.all()]
        return buckets


__all__ = ["RELEVANCE_LABEL", "SqlAlchemySearchStore"]
