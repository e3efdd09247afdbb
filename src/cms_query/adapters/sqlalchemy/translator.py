"""SQLAlchemy adapter – predicate and sort translation.

Walks the store-neutral predicate tree and emits SQLAlchemy Core clauses
against a mapped model. The mapping is one node to one SQL construct:

=================  ==================================================
``Compare``        ``col <op> :v`` (``lower(col) = :v`` when case-insensitive)
``TextMatch``      ``col IS NOT NULL AND lower(col) LIKE :v ESCAPE '/'``
``Between``        ``col BETWEEN :low AND :high``
``In``             ``col IN (...)``
``IsNull``         ``col IS NULL``
``And/Or/Not``     ``AND`` / ``OR`` / ``NOT``
=================  ==================================================

SQL's own three-valued logic then gives the same answers as
:meth:`Predicate.evaluate`.
"""
from __future__ import annotations

import operator
from collections.abc import Iterable
from typing import Any

import sqlalchemy as sa
from sqlalchemy.sql.elements import ColumnElement

from cms_query.application.search.configuration import FieldDescriptor
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
from cms_query.application.search.sorting import SortKey

_OPERATORS = {
    ComparisonOperator.EQ: operator.eq,
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.GTE: operator.ge,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.LTE: operator.le,
}


class PredicateTranslator:
    def __init__(self, model: type[Any]) -> None:
        self._model = model

    def column(self, field: FieldDescriptor) -> Any:
        return getattr(self._model, field.name)

    def lowered(self, field: FieldDescriptor) -> ColumnElement[str]:
        column = self.column(field)
        if isinstance(column.type, sa.Enum):
            # lower() is not defined for native enum types
            column = sa.cast(column, sa.String())
        return sa.func.lower(column, type_=sa.String())

    def to_clause(self, predicate: Predicate) -> ColumnElement[bool]:
        match predicate:
            case Compare(field=field, op=op, value=value, case_insensitive=True):
                return _OPERATORS[op](self.lowered(field), value)
            case Compare(field=field, op=op, value=value):
                return _OPERATORS[op](self.column(field), value)
            case TextMatch(field=field, mode=mode, value=value):
                lowered = self.lowered(field)
                if mode is TextMode.STARTS_WITH:
                    match_clause = lowered.startswith(value, autoescape=True)
                elif mode is TextMode.ENDS_WITH:
                    match_clause = lowered.endswith(value, autoescape=True)
                else:
                    match_clause = lowered.contains(value, autoescape=True)
                return sa.and_(self.column(field).is_not(None), match_clause)
            case Between(field=field, low=low, high=high):
                return self.column(field).between(low, high)
            case In(field=field, values=values):
                return self.column(field).in_(list(values))
            case IsNull(field=field):
                return self.column(field).is_(None)
            case And(left=left, right=right):
                return sa.and_(self.to_clause(left), self.to_clause(right))
            case Or(left=left, right=right):
                return sa.or_(self.to_clause(left), self.to_clause(right))
            case Not(operand=operand):
                return sa.not_(self.to_clause(operand))
        raise TypeError(f"Cannot translate predicate {predicate!r}")

    def order_by(self, keys: Iterable[SortKey]) -> list[Any]:
        """ORDER BY clauses with PostgreSQL's default NULL placement made explicit."""
        clauses = []
        for key in keys:
            column = self.column(key.field)
            clauses.append(column.desc().nulls_first() if key.descending else column.asc().nulls_last())
        return clauses


__all__ = ["PredicateTranslator"]
