"""SQLAlchemy adapter – PostgreSQL full-text expressions.

For a :class:`FullTextQuery` over ``email`` (A) and ``first_name`` (B) the
helpers below build::

    setweight(to_tsvector('english', coalesce(email, '')), 'A')
      || setweight(to_tsvector('english', coalesce(first_name, '')), 'B')
    @@ websearch_to_tsquery('english', :term)

and rank rows with ``ts_rank(<vector>, <query>, 32)``. These expressions need
PostgreSQL; other dialects only support the plain (no search term) path.
"""
from __future__ import annotations

import functools
from typing import Any

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import REGCONFIG, TSQUERY, TSVECTOR
from sqlalchemy.sql.elements import ColumnElement

from cms_query.application.search.configuration import FieldDescriptor, SearchWeight
from cms_query.application.search.fulltext import HIGHLIGHT_START, HIGHLIGHT_STOP, FullTextQuery

# ts_rank normalization flag 32: rank / (rank + 1)
RANK_NORMALIZATION = 32

HEADLINE_OPTIONS = f"StartSel={HIGHLIGHT_START}, StopSel={HIGHLIGHT_STOP}, HighlightAll=true"


def _regconfig(language: str) -> ColumnElement[Any]:
    return sa.literal(language, type_=REGCONFIG)


def _text(model: type[Any], field: FieldDescriptor) -> ColumnElement[str]:
    column = getattr(model, field.name)
    if field.python_type is not str:
        column = sa.cast(column, sa.Text())
    return sa.func.coalesce(column, sa.literal("", type_=sa.Text()), type_=sa.Text())


def field_vector(model: type[Any], field: FieldDescriptor, weight: SearchWeight, language: str) -> ColumnElement[Any]:
    vector = sa.func.to_tsvector(_regconfig(language), _text(model, field), type_=TSVECTOR)
    # weight comes from a closed A-D enum; setweight wants a "char" literal
    return sa.func.setweight(vector, sa.literal_column(f"'{weight.value}'"), type_=TSVECTOR)


def search_vector(model: type[Any], query: FullTextQuery) -> ColumnElement[Any]:
    """Concatenate the weighted per-field vectors in registration order."""
    vectors = [field_vector(model, field, weight, query.language) for field, weight in query.fields]
    return functools.reduce(lambda left, right: left.op("||", return_type=TSVECTOR)(right), vectors)


def ts_query(query: FullTextQuery) -> ColumnElement[Any]:
    return sa.func.websearch_to_tsquery(_regconfig(query.language), sa.literal(query.term, type_=sa.Text()), type_=TSQUERY)


def match_clause(vector: ColumnElement[Any], tsquery: ColumnElement[Any]) -> ColumnElement[bool]:
    return vector.bool_op("@@")(tsquery)


def rank_expression(vector: ColumnElement[Any], tsquery: ColumnElement[Any]) -> ColumnElement[float]:
    """``ts_rank`` scaled to ``rank / (rank + 1)``, the same [0, 1) scale as the in-memory store."""
    normalization = sa.literal_column(str(RANK_NORMALIZATION), sa.Integer())
    return sa.func.ts_rank(vector, tsquery, normalization, type_=sa.Float())


def headline(model: type[Any], field: FieldDescriptor, query: FullTextQuery, tsquery: ColumnElement[Any]) -> ColumnElement[str]:
    return sa.func.ts_headline(
        _regconfig(query.language),
        _text(model, field),
        tsquery,
        sa.literal(HEADLINE_OPTIONS, type_=sa.Text()),
        type_=sa.Text(),
    )


__all__ = [
    "HEADLINE_OPTIONS",
    "RANK_NORMALIZATION",
    "field_vector",
    "headline",
    "match_clause",
    "rank_expression",
    "search_vector",
    "ts_query",
]
