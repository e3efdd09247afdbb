"""Application search – predicate AST.

Filters compile to a small tree of frozen nodes (:class:`Compare`,
:class:`TextMatch`, :class:`Between`, :class:`In`, :class:`IsNull` joined by
:class:`And`, :class:`Or`, :class:`Not`). The tree carries no SQL; store
adapters walk it to emit their native query form, and :meth:`Predicate.evaluate`
interprets it directly against Python objects.

Evaluation follows SQL's three-valued logic so both interpretations agree:
comparing against a NULL attribute is *unknown* (``None``), ``NOT unknown``
is unknown, and only rows evaluating to ``True`` pass a filter.

Example::

    admins = Compare(role, ComparisonOperator.EQ, "admin", case_insensitive=True)
    recent = Compare(created_at, ComparisonOperator.GTE, cutoff)
    predicate = admins & recent | IsNull(deleted_at)
"""
from __future__ import annotations

import abc
import dataclasses
import datetime
import enum
from typing import Any

from cms_query.application.search.configuration import FieldDescriptor


class ComparisonOperator(str, enum.Enum):
    EQ = "="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="


class TextMode(str, enum.Enum):
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"


class Predicate(abc.ABC):
    """Abstract base for predicate nodes, with the usual boolean combinators."""

    @abc.abstractmethod
    def evaluate(self, row: Any) -> bool | None:
        """Return ``True``, ``False`` or ``None`` (unknown) for *row*."""

    def is_satisfied_by(self, row: Any) -> bool:
        return self.evaluate(row) is True

    # Named combinators ------------------------------------------------
    def and_(self, other: "Predicate") -> "And":
        return And(self, other)

    def or_(self, other: "Predicate") -> "Or":
        return Or(self, other)

    def not_(self) -> "Not":
        return Not(self)

    # Operator overloads -----------------------------------------------
    def __and__(self, other: "Predicate") -> "And":
        return And(self, other)

    def __or__(self, other: "Predicate") -> "Or":
        return Or(self, other)

    def __invert__(self) -> "Not":
        return Not(self)


def _aligned(left: Any, right: Any) -> tuple[Any, Any]:
    # naive and aware datetimes do not compare in Python; treat naive as UTC
    if isinstance(left, datetime.datetime) and isinstance(right, datetime.datetime):
        if left.tzinfo is None and right.tzinfo is not None:
            left = left.replace(tzinfo=datetime.timezone.utc)
        elif right.tzinfo is None and left.tzinfo is not None:
            right = right.replace(tzinfo=datetime.timezone.utc)
    return left, right


def _compare(op: ComparisonOperator, left: Any, right: Any) -> bool | None:
    left, right = _aligned(left, right)
    try:
        if op is ComparisonOperator.EQ:
            return left == right
        if op is ComparisonOperator.GT:
            return left > right
        if op is ComparisonOperator.GTE:
            return left >= right
        if op is ComparisonOperator.LT:
            return left < right
        return left <= right
    except TypeError:
        # untyped attribute holding an incomparable value
        return None


@dataclasses.dataclass(frozen=True)
class Compare(Predicate):
    """``field <op> value``. With *case_insensitive* both sides are lower-cased."""

    field: FieldDescriptor
    op: ComparisonOperator
    value: Any
    case_insensitive: bool = False

    def evaluate(self, row: Any) -> bool | None:
        actual = self.field.read(row)
        if actual is None:
            return None
        if self.case_insensitive:
            return _compare(self.op, str(actual).lower(), str(self.value).lower())
        return _compare(self.op, actual, self.value)


@dataclasses.dataclass(frozen=True)
class TextMatch(Predicate):
    """Case-insensitive substring test; a NULL attribute never matches."""

    field: FieldDescriptor
    mode: TextMode
    value: str

    def evaluate(self, row: Any) -> bool | None:
        actual = self.field.read(row)
        if actual is None:
            return False
        text = str(actual).lower()
        needle = self.value.lower()
        if self.mode is TextMode.STARTS_WITH:
            return text.startswith(needle)
        if self.mode is TextMode.ENDS_WITH:
            return text.endswith(needle)
        return needle in text


@dataclasses.dataclass(frozen=True)
class Between(Predicate):
    """Inclusive range ``low <= field <= high``."""

    field: FieldDescriptor
    low: Any
    high: Any

    def evaluate(self, row: Any) -> bool | None:
        actual = self.field.read(row)
        if actual is None:
            return None
        lower = _compare(ComparisonOperator.GTE, actual, self.low)
        upper = _compare(ComparisonOperator.LTE, actual, self.high)
        return _kleene_and(lower, upper)


@dataclasses.dataclass(frozen=True)
class In(Predicate):
    field: FieldDescriptor
    values: tuple[Any, ...]

    def evaluate(self, row: Any) -> bool | None:
        actual = self.field.read(row)
        if actual is None:
            return None
        result: bool | None = False
        for value in self.values:
            result = _kleene_or(result, _compare(ComparisonOperator.EQ, actual, value))
            if result is True:
                break
        return result


@dataclasses.dataclass(frozen=True)
class IsNull(Predicate):
    field: FieldDescriptor

    def evaluate(self, row: Any) -> bool | None:
        return self.field.read(row) is None


@dataclasses.dataclass(frozen=True)
class And(Predicate):
    left: Predicate
    right: Predicate

    def evaluate(self, row: Any) -> bool | None:
        return _kleene_and(self.left.evaluate(row), self.right.evaluate(row))


@dataclasses.dataclass(frozen=True)
class Or(Predicate):
    left: Predicate
    right: Predicate

    def evaluate(self, row: Any) -> bool | None:
        return _kleene_or(self.left.evaluate(row), self.right.evaluate(row))


@dataclasses.dataclass(frozen=True)
class Not(Predicate):
    operand: Predicate

    def evaluate(self, row: Any) -> bool | None:
        result = self.operand.evaluate(row)
        return None if result is None else not result


def _kleene_and(left: bool | None, right: bool | None) -> bool | None:
    if left is False or right is False:
        return False
    if left is None or right is None:
        return None
    return True


def _kleene_or(left: bool | None, right: bool | None) -> bool | None:
    if left is True or right is True:
        return True
    if left is None or right is None:
        return None
    return False


__all__ = [
    "And",
    "Between",
    "Compare",
    "ComparisonOperator",
    "In",
    "IsNull",
    "Not",
    "Or",
    "Predicate",
    "TextMatch",
    "TextMode",
]
