"""SQLAlchemy ORM mixins – TimestampMixin, SoftDeleteMixin.

Both mixins know how to declare their columns on a
:class:`~cms_query.application.search.SearchConfiguration`, so entities that
share them expose the same filters and sorts::

    class Page(TimestampMixin, SoftDeleteMixin, Base):
        __tablename__ = "pages"
        id: Mapped[int] = mapped_column(primary_key=True)
        title: Mapped[str]

    config = SearchConfiguration(Page).add_searchable_field(Page.title, "A")
    Page.register_timestamp_fields(config)
    Page.register_soft_delete(config)
"""
from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from cms_query.application.search.configuration import SearchConfiguration
from cms_query.application.search.query import FilterOperator

TIMESTAMP_OPERATORS = (
    FilterOperator.EQUALS,
    FilterOperator.GREATER_THAN,
    FilterOperator.GREATER_THAN_OR_EQUAL,
    FilterOperator.LESS_THAN,
    FilterOperator.LESS_THAN_OR_EQUAL,
    FilterOperator.BETWEEN,
)


class TimestampMixin:
    """Adds ``created_at`` and ``updated_at`` timestamp columns.

    Both default to the database server's current time; ``updated_at`` is
    refreshed on every UPDATE.
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @classmethod
    def register_timestamp_fields(
        cls, configuration: SearchConfiguration[Any], *, default_sort: bool = True
    ) -> SearchConfiguration[Any]:
        """Make both timestamps range-filterable and sortable.

        With *default_sort*, newest ``created_at`` first becomes the default
        order.
        """
        for name in ("created_at", "updated_at"):
            configuration.add_filterable_field(name, *TIMESTAMP_OPERATORS)
            configuration.add_sortable_field(name)
        if default_sort:
            configuration.set_default_sort("created_at", descending=True)
        return configuration


class SoftDeleteMixin:
    """Adds a nullable ``deleted_at`` timestamp; ``NULL`` means the row is live."""

    deleted_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        index=True,
    )

    @classmethod
    def register_soft_delete(cls, configuration: SearchConfiguration[Any]) -> SearchConfiguration[Any]:
        """Hide soft-deleted rows from searches unless ``include_deleted`` is set."""
        return configuration.set_soft_delete_field("deleted_at")

    def soft_delete(self) -> None:
        self.deleted_at = datetime.datetime.now(datetime.UTC)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


__all__ = ["TIMESTAMP_OPERATORS", "SoftDeleteMixin", "TimestampMixin"]
