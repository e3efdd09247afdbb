"""Unit tests for the web-search parser and the in-process full-text scorer."""
from __future__ import annotations

import pytest

from cms_query.application.search import FullTextQuery, SearchWeight, WebSearchQuery
from cms_query.application.search.fulltext import Term, tokenize
from searchdata import make_users, user_config


def _query(term: str, *, highlight: tuple[str, ...] = ()) -> FullTextQuery:
    config = user_config()
    fields = tuple((config.field(name), weight) for name, weight in config.searchable_fields.items())
    return FullTextQuery(
        term=term,
        language="english",
        fields=fields,
        highlight_fields=tuple(config.field(name) for name in highlight),
    )


class TestWebSearchParsing:
    def test_tokenize(self) -> None:
        assert tokenize("John.Smith@Example.com") == ["john", "smith", "example", "com"]
        assert tokenize(None) == []

    def test_bare_words_are_anded(self) -> None:
        parsed = WebSearchQuery.parse("john smith")
        assert parsed.alternatives == ((Term(("john",)), Term(("smith",))),)

    def test_phrase_or_and_negation(self) -> None:
        parsed = WebSearchQuery.parse('"john smith" or doe -ghost')
        assert parsed.alternatives == (
            (Term(("john", "smith")),),
            (Term(("doe",)), Term(("ghost",), negated=True)),
        )
        assert parsed.positive_words == frozenset({"john", "smith", "doe"})

    def test_unterminated_phrase(self) -> None:
        parsed = WebSearchQuery.parse('"john smith')
        assert parsed.alternatives == ((Term(("john", "smith")),),)

    @pytest.mark.parametrize("text", ["", "-", "or", '""', "!!!"])
    def test_empty_queries(self, text: str) -> None:
        assert WebSearchQuery.parse(text).is_empty

    def test_leading_or_is_ignored(self) -> None:
        assert WebSearchQuery.parse("or john").alternatives == ((Term(("john",)),),)

    def test_phrase_needs_consecutive_words(self) -> None:
        parsed = WebSearchQuery.parse('"smith john"')
        assert not parsed.matches([["john", "smith"]])
        assert parsed.matches([["x", "smith", "john"]])


class TestFullTextQuery:
    def test_matches_any_searchable_field(self) -> None:
        query = _query("john")
        assert {user.id for user in make_users() if query.matches(user)} == {1, 2, 3, 4, 6}

    def test_negation(self) -> None:
        query = _query("john -doe -ghost")
        assert {user.id for user in make_users() if query.matches(user)} == {1, 3, 4}

    def test_alternatives(self) -> None:
        query = _query("alice or bob")
        assert {user.id for user in make_users() if query.matches(user)} == {5, 7}

    def test_rank_weights_hits_by_field(self) -> None:
        users = make_users()
        query = _query("john")
        # email (A) + first_name (B)
        assert query.rank(users[0]) == pytest.approx(1.4 / 2.4)
        # first_name (B) only
        assert query.rank(users[1]) == pytest.approx(0.4 / 1.4)
        assert query.rank(users[4]) == 0.0

    def test_rank_is_below_one(self) -> None:
        query = _query("john smith example com")
        assert 0.0 < query.rank(make_users()[0]) < 1.0

    def test_highlight_marks_matched_words(self) -> None:
        query = _query("john", highlight=("first_name", "last_name"))
        assert query.highlight(make_users()[2]) == {"first_name": "Elton", "last_name": "<mark>John</mark>"}
        assert query.highlight(make_users()[6]) == {"first_name": "Bob", "last_name": ""}

    def test_no_highlight_fields(self) -> None:
        assert _query("john").highlight(make_users()[0]) is None

    def test_weights_are_carried(self) -> None:
        assert [weight for _, weight in _query("x").fields] == [SearchWeight.A, SearchWeight.B, SearchWeight.B]
