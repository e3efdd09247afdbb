"""SQLAlchemy adapter – search store, predicate translation, PostgreSQL full text."""
from cms_query.adapters.sqlalchemy.mixins import SoftDeleteMixin, TimestampMixin
from cms_query.adapters.sqlalchemy.session import SqlAlchemySessionFactory
from cms_query.adapters.sqlalchemy.store import SqlAlchemySearchStore
from cms_query.adapters.sqlalchemy.translator import PredicateTranslator

__all__ = [
    "PredicateTranslator",
    "SoftDeleteMixin",
    "SqlAlchemySearchStore",
    "SqlAlchemySessionFactory",
    "TimestampMixin",
]
