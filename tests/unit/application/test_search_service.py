"""Unit tests for SearchService over the in-memory store."""
from __future__ import annotations

import asyncio
from typing import Any

import pytest
from structlog.testing import capture_logs

from cms_query.application.search import (
    CancellationToken,
    FilterCriteria,
    FilterOperator,
    InMemorySearchStore,
    LogicalOperator,
    SearchConfiguration,
    SearchEngine,
    SearchPlan,
    SearchRequest,
    SearchResult,
    SearchService,
    SortCriteria,
    SortDirection,
)
from cms_query.config.settings.base import SearchSettings
from cms_query.kernel.errors import SearchCancelledError
from searchdata import User, make_users, user_config


def _search(
    request: SearchRequest,
    config: SearchConfiguration[User] | None = None,
    *,
    store: Any = None,
    service: SearchService | None = None,
    **kwargs: Any,
) -> SearchResult[Any]:
    engine = service or SearchService()
    return asyncio.run(
        engine.search(store or InMemorySearchStore(make_users()), request, config or user_config(), **kwargs)
    )


def _ids(result: SearchResult[Any]) -> list[int]:
    return [item.data.id for item in result.items]


class _RecordingStore(InMemorySearchStore[User]):
    def __init__(self) -> None:
        super().__init__(make_users())
        self.plans: list[SearchPlan] = []

    async def fetch(self, plan: SearchPlan):
        self.plans.append(plan)
        return await super().fetch(plan)


class _BlockingStore(InMemorySearchStore[User]):
    def __init__(self) -> None:
        super().__init__(make_users())
        self.interrupted = False

    async def count(self, plan: SearchPlan) -> int:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.interrupted = True
            raise
        return 0


class _BlockingFetchStore(InMemorySearchStore[User]):
    def __init__(self) -> None:
        super().__init__(make_users())
        self.counted = False
        self.interrupted = False

    async def count(self, plan: SearchPlan) -> int:
        self.counted = True
        return await super().count(plan)

    async def fetch(self, plan: SearchPlan):
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.interrupted = True
            raise
        return []


class _FailingStore(InMemorySearchStore[User]):
    async def fetch(self, plan: SearchPlan):
        raise RuntimeError("connection reset")


class TestPlainPath:
    def test_default_sort_and_soft_delete(self) -> None:
        result = _search(SearchRequest())
        assert result.total_count == 6
        assert _ids(result) == [7, 4, 3, 2, 1, 5]
        assert all(item.relevance_score is None for item in result.items)
        assert all(item.highlights is None for item in result.items)

    def test_include_deleted(self) -> None:
        between = FilterCriteria("CreatedAt", FilterOperator.BETWEEN, ["2024-01-01", "2024-12-31T23:59:59"])
        assert _search(SearchRequest(filters=[between])).total_count == 4
        assert _search(SearchRequest(filters=[between], include_deleted=True)).total_count == 5

    def test_requested_sort_nulls_last_ascending(self) -> None:
        result = _search(SearchRequest(sorts=[SortCriteria("Age")]))
        assert _ids(result) == [7, 4, 1, 2, 5, 3]

    def test_requested_sort_nulls_first_descending(self) -> None:
        result = _search(SearchRequest(sorts=[SortCriteria("Age", SortDirection.DESCENDING)]))
        assert _ids(result) == [3, 5, 2, 1, 4, 7]

    def test_left_fold_filters(self) -> None:
        request = SearchRequest(
            filters=[
                FilterCriteria("Role", value="Editor"),
                FilterCriteria("Role", value="Viewer", logical_operator=LogicalOperator.OR),
                FilterCriteria("IsActive", value=True),
            ]
        )
        assert _ids(_search(request)) == [7]

    def test_unknown_filters_and_sorts_are_ignored(self) -> None:
        request = SearchRequest(
            filters=[FilterCriteria("Password", value="x"), FilterCriteria("Role", value="Viewer")],
            sorts=[SortCriteria("Password")],
        )
        result = _search(request)
        assert _ids(result) == [7]
        assert result.applied_filters == request.filters
        assert result.applied_sorts == request.sorts

    def test_short_term_uses_plain_path(self) -> None:
        result = _search(SearchRequest(search_term="j"))
        assert result.total_count == 6
        assert result.search_term == "j"
        assert result.items[0].relevance_score is None

    def test_projection(self) -> None:
        result = _search(SearchRequest(page_size=2), project=lambda user: user.email)
        assert [item.data for item in result.items] == ["bob@example.com", "john.editor@example.com"]


class TestFullTextPath:
    def test_relevance_then_default_sort(self) -> None:
        result = _search(SearchRequest(search_term="john", filters=[FilterCriteria("Role", value="Admin")]))
        assert result.total_count == 3
        assert _ids(result) == [1, 3, 2]
        scores = [item.relevance_score for item in result.items]
        assert scores[0] == pytest.approx(1.4 / 2.4)
        assert scores[1] == scores[2] == pytest.approx(0.4 / 1.4)

    def test_search_fields_restrict_matching(self) -> None:
        result = _search(SearchRequest(search_term="john", search_fields=["LastName"]))
        assert _ids(result) == [3]

    def test_unknown_search_fields_fall_back_to_all(self) -> None:
        with capture_logs() as logs:
            result = _search(SearchRequest(search_term="john", search_fields=["Password"]))
        assert result.total_count == 4
        assert any(entry["event"] == "search.field_skipped" for entry in logs)

    def test_min_relevance_score(self) -> None:
        result = _search(SearchRequest(search_term="john", min_relevance_score=0.5))
        assert sorted(_ids(result)) == [1, 4]

    def test_min_relevance_ignored_without_term(self) -> None:
        assert _search(SearchRequest(min_relevance_score=0.9)).total_count == 6

    def test_sanitised_term_is_echoed(self) -> None:
        result = _search(SearchRequest(search_term="   john    "))
        assert result.search_term == "john"
        assert result.total_count == 4

    def test_highlights(self) -> None:
        config = user_config().add_highlight_field("first_name")
        result = _search(SearchRequest(search_term="john", page_size=1), config)
        assert result.items[0].highlights == {"first_name": "<mark>John</mark>"}

    def test_scores_are_never_negative(self) -> None:
        result = _search(SearchRequest(search_term="alice"))
        assert all(item.relevance_score >= 0.0 for item in result.items)


class TestPaging:
    def test_page_window(self) -> None:
        result = _search(SearchRequest(page_number=2, page_size=2))
        assert _ids(result) == [3, 2]
        assert result.total_pages == 3
        assert result.has_previous_page and result.has_next_page

    def test_page_beyond_end_skips_fetch(self) -> None:
        store = _RecordingStore()
        result = _search(SearchRequest(page_number=10, page_size=2), store=store)
        assert result.items == []
        assert result.total_count == 6
        assert store.plans == []

    def test_paging_values_are_clamped(self) -> None:
        result = _search(SearchRequest(page_number=-1, page_size=0))
        assert (result.page_number, result.page_size) == (1, 10)
        result = _search(SearchRequest(page_size=500))
        assert result.page_size == 100

    def test_empty_result(self) -> None:
        request = SearchRequest(
            filters=[FilterCriteria("Role", value="Viewer"), FilterCriteria("Age", FilterOperator.GREATER_THAN, 90)]
        )
        result = _search(request)
        assert result.total_count == 0
        assert result.total_pages == 0
        assert not result.has_next_page


class TestFacets:
    def test_counts_ordered_by_count(self) -> None:
        config = user_config().add_facet_field("role")
        result = _search(SearchRequest(), config)
        assert [(b.value, b.count, b.is_selected) for b in result.facets["role"]] == [
            ("Admin", 4, False),
            ("Editor", 1, False),
            ("Viewer", 1, False),
        ]

    def test_selected_values_marked(self) -> None:
        config = user_config().add_facet_field("role")
        request = SearchRequest(filters=[FilterCriteria("Role", FilterOperator.IN, ["admin", "Editor"])])
        result = _search(request, config)
        assert [(b.value, b.count, b.is_selected) for b in result.facets["role"]] == [
            ("Admin", 4, True),
            ("Editor", 1, True),
        ]

    def test_no_facets_configured(self) -> None:
        assert _search(SearchRequest()).facets is None


class TestCancellation:
    def test_cancelled_before_start(self) -> None:
        token = CancellationToken()
        token.cancel()
        with pytest.raises(SearchCancelledError) as exc_info:
            _search(SearchRequest(), cancellation=token)
        assert exc_info.value.stage == "validate"

    def test_cancel_interrupts_store_call(self) -> None:
        store = _BlockingStore()

        async def run() -> None:
            token = CancellationToken()
            token.cancel_after(0.01)
            await SearchService().search(store, SearchRequest(), user_config(), cancellation=token)

        with capture_logs() as logs, pytest.raises(SearchCancelledError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.stage == "count"
        assert exc_info.value.code == "search_cancelled"
        assert store.interrupted
        assert [entry["stage"] for entry in logs if entry["event"] == "search.cancelled"] == ["count"]

    def test_cancel_interrupts_fetch(self) -> None:
        store = _BlockingFetchStore()

        async def run() -> None:
            token = CancellationToken()
            token.cancel_after(0.01)
            await SearchService().search(store, SearchRequest(search_term="john"), user_config(), cancellation=token)

        with capture_logs() as logs, pytest.raises(SearchCancelledError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.stage == "fetch"
        assert store.counted
        assert store.interrupted
        assert [entry["stage"] for entry in logs if entry["event"] == "search.cancelled"] == ["fetch"]

    def test_unfired_token_is_harmless(self) -> None:
        assert _search(SearchRequest(), cancellation=CancellationToken()).total_count == 6


class TestFailuresAndLogging:
    def test_store_errors_propagate(self) -> None:
        with capture_logs() as logs, pytest.raises(RuntimeError, match="connection reset"):
            _search(SearchRequest(), store=_FailingStore(make_users()))
        failed = [entry for entry in logs if entry["event"] == "search.failed"]
        assert len(failed) == 1
        assert failed[0]["stage"] == "fetch"
        assert failed[0]["log_level"] == "error"

    def test_completion_is_logged(self) -> None:
        with capture_logs() as logs:
            _search(SearchRequest(search_term="john"))
        completed = [entry for entry in logs if entry["event"] == "search.completed"]
        assert len(completed) == 1
        entry = completed[0]
        assert entry["entity"] == "User"
        assert entry["full_text"] is True
        assert entry["term_length"] == 4
        assert entry["total_count"] == 4
        assert entry["returned"] == 4
        assert "search.slow" not in [e["event"] for e in logs]

    def test_slow_searches_warn(self) -> None:
        service = SearchService(SearchSettings(slow_search_threshold_ms=-1))
        with capture_logs() as logs:
            _search(SearchRequest(), service=service)
        slow = [entry for entry in logs if entry["event"] == "search.slow"]
        assert len(slow) == 1
        assert slow[0]["log_level"] == "warning"
        assert slow[0]["threshold_ms"] == -1

    def test_configuration_frozen_after_first_search(self) -> None:
        config = user_config()
        _search(SearchRequest(), config)
        assert config.frozen

    def test_service_satisfies_engine_protocol(self) -> None:
        assert isinstance(SearchService(), SearchEngine)
