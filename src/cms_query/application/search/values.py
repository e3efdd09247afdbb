"""Application search – filter value conversion.

Filter values arrive loosely typed (JSON strings, numbers, booleans, lists).
Each raw value is tagged by its runtime shape and converted to the target
field's type through a table keyed by ``(ValueTag, TargetKind)``. A pair with
no entry, or a converter that cannot parse its input, yields
:data:`UNCONVERTIBLE` so callers branch on a value instead of catching
exceptions.
"""
from __future__ import annotations

import datetime
import decimal
import enum
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from cms_query.application.search.configuration import FieldDescriptor


class _Unconvertible:
    _instance: "_Unconvertible | None" = None

    def __new__(cls) -> "_Unconvertible":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCONVERTIBLE"

    def __bool__(self) -> bool:
        return False


UNCONVERTIBLE: Any = _Unconvertible()


class ValueTag(enum.Enum):
    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    STRING = "string"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    UUID = "uuid"
    ENUM = "enum"
    COLLECTION = "collection"
    OTHER = "other"


class TargetKind(enum.Enum):
    STRING = "string"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    UUID = "uuid"
    ENUM = "enum"
    OTHER = "other"


def tag_of(value: Any) -> ValueTag:
    # order matters: bool is an int, str-enums are str, datetime is a date
    if value is None:
        return ValueTag.NULL
    if isinstance(value, enum.Enum):
        return ValueTag.ENUM
    if isinstance(value, bool):
        return ValueTag.BOOL
    if isinstance(value, int):
        return ValueTag.INT
    if isinstance(value, float):
        return ValueTag.FLOAT
    if isinstance(value, decimal.Decimal):
        return ValueTag.DECIMAL
    if isinstance(value, str):
        return ValueTag.STRING
    if isinstance(value, datetime.datetime):
        return ValueTag.DATETIME
    if isinstance(value, datetime.date):
        return ValueTag.DATE
    if isinstance(value, datetime.time):
        return ValueTag.TIME
    if isinstance(value, uuid.UUID):
        return ValueTag.UUID
    if isinstance(value, (list, tuple, set, frozenset)):
        return ValueTag.COLLECTION
    return ValueTag.OTHER


def kind_of(python_type: type) -> TargetKind:
    if issubclass(python_type, enum.Enum):
        return TargetKind.ENUM
    if issubclass(python_type, bool):
        return TargetKind.BOOL
    if issubclass(python_type, int):
        return TargetKind.INT
    if issubclass(python_type, float):
        return TargetKind.FLOAT
    if issubclass(python_type, decimal.Decimal):
        return TargetKind.DECIMAL
    if issubclass(python_type, str):
        return TargetKind.STRING
    if issubclass(python_type, datetime.datetime):
        return TargetKind.DATETIME
    if issubclass(python_type, datetime.date):
        return TargetKind.DATE
    if issubclass(python_type, datetime.time):
        return TargetKind.TIME
    if issubclass(python_type, uuid.UUID):
        return TargetKind.UUID
    return TargetKind.OTHER


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------

Converter = Callable[[Any, "FieldDescriptor"], Any]


def _identity(value: Any, field: FieldDescriptor) -> Any:
    return value


def _to_str(value: Any, field: FieldDescriptor) -> Any:
    if isinstance(value, enum.Enum):
        return value.value if isinstance(value.value, str) else value.name
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def _parse_bool(value: str, field: FieldDescriptor) -> Any:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return UNCONVERTIBLE


def _int_to_bool(value: int, field: FieldDescriptor) -> Any:
    return value != 0


def _parse_int(value: str, field: FieldDescriptor) -> Any:
    try:
        return int(value.strip())
    except ValueError:
        return UNCONVERTIBLE


def _integral(value: float | decimal.Decimal, field: FieldDescriptor) -> Any:
    if value != value or value in (float("inf"), float("-inf")):  # NaN / infinity
        return UNCONVERTIBLE
    if value != int(value):
        return UNCONVERTIBLE
    return int(value)


def _to_float(value: Any, field: FieldDescriptor) -> Any:
    return float(value)


def _parse_float(value: str, field: FieldDescriptor) -> Any:
    try:
        return float(value.strip())
    except ValueError:
        return UNCONVERTIBLE


def _to_decimal(value: Any, field: FieldDescriptor) -> Any:
    try:
        return decimal.Decimal(str(value).strip())
    except decimal.InvalidOperation:
        return UNCONVERTIBLE


def _align_tz(value: datetime.datetime, field: FieldDescriptor) -> datetime.datetime:
    # timezone_aware is None when storage is unknown (plain objects): keep the value as given
    if field.timezone_aware is True and value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    if field.timezone_aware is False and value.tzinfo is not None:
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def _datetime(value: datetime.datetime, field: FieldDescriptor) -> Any:
    return _align_tz(value, field)


def _date_to_datetime(value: datetime.date, field: FieldDescriptor) -> Any:
    return _align_tz(datetime.datetime.combine(value, datetime.time()), field)


def _parse_datetime(value: str, field: FieldDescriptor) -> Any:
    try:
        parsed = datetime.datetime.fromisoformat(value.strip())
    except ValueError:
        return UNCONVERTIBLE
    return _align_tz(parsed, field)


def _datetime_to_date(value: datetime.datetime, field: FieldDescriptor) -> Any:
    return value.date()


def _parse_date(value: str, field: FieldDescriptor) -> Any:
    text = value.strip()
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.datetime.fromisoformat(text).date()
    except ValueError:
        return UNCONVERTIBLE


def _parse_time(value: str, field: FieldDescriptor) -> Any:
    try:
        return datetime.time.fromisoformat(value.strip())
    except ValueError:
        return UNCONVERTIBLE


def _parse_uuid(value: str, field: FieldDescriptor) -> Any:
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return UNCONVERTIBLE


def _enum_from_str(value: str, field: FieldDescriptor) -> Any:
    enum_cls: type[enum.Enum] = field.python_type
    key = value.strip().lower()
    for member in enum_cls:
        if member.name.lower() == key or str(member.value).lower() == key:
            return member
    return UNCONVERTIBLE


def _enum_from_int(value: int, field: FieldDescriptor) -> Any:
    enum_cls: type[enum.Enum] = field.python_type
    try:
        return enum_cls(value)
    except ValueError:
        return UNCONVERTIBLE


def _enum_from_enum(value: enum.Enum, field: FieldDescriptor) -> Any:
    if isinstance(value, field.python_type):
        return value
    return _enum_from_str(value.name, field)


_TABLE: Mapping[tuple[ValueTag, TargetKind], Converter] = {
    # strings
    (ValueTag.STRING, TargetKind.STRING): _identity,
    (ValueTag.INT, TargetKind.STRING): _to_str,
    (ValueTag.FLOAT, TargetKind.STRING): _to_str,
    (ValueTag.DECIMAL, TargetKind.STRING): _to_str,
    (ValueTag.BOOL, TargetKind.STRING): _to_str,
    (ValueTag.UUID, TargetKind.STRING): _to_str,
    (ValueTag.ENUM, TargetKind.STRING): _to_str,
    (ValueTag.DATETIME, TargetKind.STRING): _to_str,
    (ValueTag.DATE, TargetKind.STRING): _to_str,
    # booleans
    (ValueTag.BOOL, TargetKind.BOOL): _identity,
    (ValueTag.STRING, TargetKind.BOOL): _parse_bool,
    (ValueTag.INT, TargetKind.BOOL): _int_to_bool,
    # integers
    (ValueTag.INT, TargetKind.INT): _identity,
    (ValueTag.STRING, TargetKind.INT): _parse_int,
    (ValueTag.FLOAT, TargetKind.INT): _integral,
    (ValueTag.DECIMAL, TargetKind.INT): _integral,
    # floats
    (ValueTag.FLOAT, TargetKind.FLOAT): _identity,
    (ValueTag.INT, TargetKind.FLOAT): _to_float,
    (ValueTag.DECIMAL, TargetKind.FLOAT): _to_float,
    (ValueTag.STRING, TargetKind.FLOAT): _parse_float,
    # decimals
    (ValueTag.DECIMAL, TargetKind.DECIMAL): _identity,
    (ValueTag.INT, TargetKind.DECIMAL): _to_decimal,
    (ValueTag.FLOAT, TargetKind.DECIMAL): _to_decimal,
    (ValueTag.STRING, TargetKind.DECIMAL): _to_decimal,
    # temporal
    (ValueTag.DATETIME, TargetKind.DATETIME): _datetime,
    (ValueTag.DATE, TargetKind.DATETIME): _date_to_datetime,
    (ValueTag.STRING, TargetKind.DATETIME): _parse_datetime,
    (ValueTag.DATE, TargetKind.DATE): _identity,
    (ValueTag.DATETIME, TargetKind.DATE): _datetime_to_date,
    (ValueTag.STRING, TargetKind.DATE): _parse_date,
    (ValueTag.TIME, TargetKind.TIME): _identity,
    (ValueTag.STRING, TargetKind.TIME): _parse_time,
    # identifiers and enums
    (ValueTag.UUID, TargetKind.UUID): _identity,
    (ValueTag.STRING, TargetKind.UUID): _parse_uuid,
    (ValueTag.ENUM, TargetKind.ENUM): _enum_from_enum,
    (ValueTag.STRING, TargetKind.ENUM): _enum_from_str,
    (ValueTag.INT, TargetKind.ENUM): _enum_from_int,
}

# untyped attributes accept any scalar unchanged
_SCALAR_TAGS = frozenset(tag for tag in ValueTag if tag not in (ValueTag.NULL, ValueTag.COLLECTION))


def convert_value(value: Any, field: FieldDescriptor) -> Any:
    """Convert *value* to *field*'s type, or return :data:`UNCONVERTIBLE`.

    ``None`` and collections never convert to a scalar; callers that accept
    null (Equals → IsNull) or many values (In, Between) handle those shapes
    themselves.
    """
    tag = tag_of(value)
    kind = kind_of(field.python_type)
    if kind is TargetKind.OTHER:
        return value if tag in _SCALAR_TAGS else UNCONVERTIBLE
    converter = _TABLE.get((tag, kind))
    if converter is None:
        return UNCONVERTIBLE
    return converter(value, field)


def is_unconvertible(value: Any) -> bool:
    return value is UNCONVERTIBLE


__all__ = ["UNCONVERTIBLE", "TargetKind", "ValueTag", "convert_value", "is_unconvertible", "kind_of", "tag_of"]
