"""Unit tests for the search field registry (SearchConfiguration)."""
from __future__ import annotations

import datetime

import pytest
from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, column_property, mapped_column

from cms_query.application.search import FilterOperator, SearchConfiguration, SearchWeight
from cms_query.config import ConfigError, InvalidFieldSelectorError
from cms_query.config.settings.base import SearchSettings
from searchdata import User, user_config


class Base(DeclarativeBase):
    pass


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    summary: Mapped[str | None] = mapped_column(String(500))
    published_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True))
    title_upper: Mapped[str] = column_property(func.upper(title))


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    body: Mapped[str] = mapped_column(String(500))


class TestFieldResolution:
    def test_public_names_resolve_case_and_underscore_insensitively(self) -> None:
        config = user_config()
        for name in ("CreatedAt", "createdAt", "created_at", "CREATED_AT"):
            assert config.field(name) is not None
            assert config.field(name).name == "created_at"

    def test_unknown_name_resolves_to_none(self) -> None:
        assert user_config().field("password") is None

    def test_descriptor_types_come_from_dataclass_hints(self) -> None:
        config = user_config()
        assert config.field("email").python_type is str
        assert config.field("email").nullable is False
        assert config.field("last_name").nullable is True
        assert config.field("age").python_type is int
        assert config.field("created_at").python_type is datetime.datetime

    def test_lookups_respect_allow_lists(self) -> None:
        config = user_config()
        assert config.filterable_field("Role") is not None
        assert config.sortable_field("Role") is None
        assert config.searchable_field("FirstName") is not None
        assert config.searchable_field("Age") is None


class TestRegistration:
    def test_searchable_fields_keep_registration_order(self) -> None:
        config = user_config()
        assert list(config.searchable_fields) == ["email", "first_name", "last_name"]
        assert config.searchable_fields["email"] is SearchWeight.A

    def test_registering_twice_overwrites(self) -> None:
        config = SearchConfiguration(User).add_searchable_field("email", "A").add_searchable_field("email", "C")
        assert config.searchable_fields == {"email": SearchWeight.C}

        config.add_filterable_field("age", FilterOperator.GREATER_THAN)
        config.add_filterable_field("age", FilterOperator.LESS_THAN)
        assert config.allowed_operators("age") == frozenset({FilterOperator.LESS_THAN})

    def test_filterable_field_defaults_to_equals(self) -> None:
        config = SearchConfiguration(User).add_filterable_field("is_active")
        assert config.allowed_operators("IsActive") == frozenset({FilterOperator.EQUALS})

    def test_operator_names_are_accepted(self) -> None:
        config = SearchConfiguration(User).add_filterable_field("age", "GreaterThan", "between")
        assert config.allowed_operators("age") == frozenset({FilterOperator.GREATER_THAN, FilterOperator.BETWEEN})

    def test_unknown_operator_name_rejected(self) -> None:
        with pytest.raises(ConfigError):
            SearchConfiguration(User).add_filterable_field("age", "Approximately")

    def test_unknown_attribute_rejected_at_registration(self) -> None:
        with pytest.raises(InvalidFieldSelectorError) as exc_info:
            SearchConfiguration(User).add_sortable_field("password")
        assert exc_info.value.code == "invalid_field_selector"

    def test_non_attribute_selector_rejected(self) -> None:
        with pytest.raises(InvalidFieldSelectorError):
            SearchConfiguration(User).add_searchable_field(lambda u: u.email)

    def test_soft_delete_field_must_be_nullable(self) -> None:
        with pytest.raises(InvalidFieldSelectorError):
            SearchConfiguration(User).set_soft_delete_field("email")

    def test_highlight_field_must_be_searchable(self) -> None:
        with pytest.raises(InvalidFieldSelectorError):
            SearchConfiguration(User).add_highlight_field("email")
        config = SearchConfiguration(User).add_searchable_field("email", "A").add_highlight_field("email")
        assert config.highlight_fields == ("email",)

    def test_facet_fields_are_not_duplicated(self) -> None:
        config = SearchConfiguration(User).add_facet_field("role").add_facet_field("Role")
        assert config.facet_fields == ("role",)

    def test_frozen_configuration_rejects_changes(self) -> None:
        config = user_config().freeze()
        assert config.frozen
        with pytest.raises(ConfigError):
            config.add_sortable_field("email")

    def test_exposed_collections_are_read_only(self) -> None:
        config = user_config()
        with pytest.raises(TypeError):
            config.searchable_fields["age"] = SearchWeight.A  # type: ignore[index]
        with pytest.raises(TypeError):
            config.filterable_fields["age"] = frozenset()  # type: ignore[index]
        assert isinstance(config.sortable_fields, frozenset)
        assert isinstance(config.facet_fields, tuple)

    def test_frozen_configuration_rejects_attribute_changes(self) -> None:
        config = user_config().freeze()
        with pytest.raises(ConfigError):
            config.language = "german"
        with pytest.raises(ConfigError):
            config.default_sort_field = "email"
        assert config.language == "english"

    def test_freeze_is_idempotent(self) -> None:
        config = user_config()
        assert config.freeze().freeze() is config


class TestDefaults:
    def test_defaults_come_from_settings(self) -> None:
        settings = SearchSettings(default_page_size=20, max_page_size=50, min_search_term_length=3, language="simple")
        config = SearchConfiguration(User, settings)
        assert config.default_page_size == 20
        assert config.max_page_size == 50
        assert config.min_search_term_length == 3
        assert config.language == "simple"

    def test_per_entity_overrides(self) -> None:
        config = SearchConfiguration(User).set_page_size(25, 40).set_language("german").set_min_search_term_length(4)
        assert (config.default_page_size, config.max_page_size) == (25, 40)
        assert config.language == "german"
        assert config.min_search_term_length == 4

    def test_invalid_page_sizes_rejected(self) -> None:
        with pytest.raises(ConfigError):
            SearchConfiguration(User).set_page_size(default=60, maximum=50)
        with pytest.raises(ConfigError):
            SearchConfiguration(User).set_page_size(maximum=0)

    def test_search_weight_parse(self) -> None:
        assert SearchWeight.parse("b") is SearchWeight.B
        assert SearchWeight.A.rank_weight == 1.0
        assert SearchWeight.D.rank_weight == 0.1
        with pytest.raises(ConfigError):
            SearchWeight.parse("Z")


class TestMappedEntities:
    def test_instrumented_attributes_are_accepted(self) -> None:
        config = (
            SearchConfiguration(Article)
            .add_searchable_field(Article.title, SearchWeight.A)
            .add_sortable_field(Article.published_at)
        )
        assert list(config.searchable_fields) == ["title"]
        assert config.sortable_field("PublishedAt") is not None

    def test_column_metadata_is_introspected(self) -> None:
        config = SearchConfiguration(Article)
        assert config.field("title").python_type is str
        assert config.field("title").nullable is False
        assert config.field("summary").nullable is True
        assert config.field("published_at").timezone_aware is True

    def test_derived_column_property_rejected(self) -> None:
        with pytest.raises(InvalidFieldSelectorError):
            SearchConfiguration(Article).add_sortable_field(Article.title_upper)
        assert SearchConfiguration(Article).field("title_upper") is None

    def test_sql_expression_rejected(self) -> None:
        with pytest.raises(InvalidFieldSelectorError):
            SearchConfiguration(Article).add_searchable_field(func.lower(Article.title))

    def test_attribute_of_another_entity_rejected(self) -> None:
        with pytest.raises(InvalidFieldSelectorError):
            SearchConfiguration(Article).add_searchable_field(Comment.body)
