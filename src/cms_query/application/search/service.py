"""Application search – SearchEngine Protocol and SearchService.

:class:`SearchService` runs one search end to end::

    sanitize → filter → (full text?) → count → sort → page → project → assemble

It is stateless: every call builds its own predicate, sort and result, so a
single instance may serve any number of concurrent searches.
"""
from __future__ import annotations

import datetime
import enum
import time
from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

from cms_query.application.pagination import PageRequest
from cms_query.application.search.builder import PredicateBuilder
from cms_query.application.search.cancellation import CancellationToken
from cms_query.application.search.configuration import FieldDescriptor, SearchConfiguration, SearchWeight
from cms_query.application.search.fulltext import FullTextQuery
from cms_query.application.search.predicates import IsNull
from cms_query.application.search.query import FilterOperator, SearchRequest
from cms_query.application.search.result import FacetValue, SearchResult, SearchResultItem
from cms_query.application.search.sanitizer import sanitize_request
from cms_query.application.search.sorting import compose_sort
from cms_query.application.search.store import ScoredRow, SearchPlan, SearchStore
from cms_query.config.settings.base import SearchSettings
from cms_query.kernel.errors import SearchCancelledError
from cms_query.observability.logging import get_logger

T = TypeVar("T")


@runtime_checkable
class SearchEngine(Protocol):
    async def search(
        self,
        store: SearchStore[Any],
        request: SearchRequest,
        configuration: SearchConfiguration[Any],
        *,
        project: Callable[[Any], Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> SearchResult[Any]: ...


class SearchService:
    """Search orchestrator over any :class:`SearchStore`.

    Store failures propagate unchanged (after an ERROR log); a fired
    :class:`CancellationToken` surfaces as :class:`SearchCancelledError`.
    """

    def __init__(self, settings: SearchSettings | None = None) -> None:
        self._settings = settings or SearchSettings()
        self._log = get_logger(__name__)

    async def search(
        self,
        store: SearchStore[Any],
        request: SearchRequest,
        configuration: SearchConfiguration[Any],
        *,
        project: Callable[[Any], Any] | None = None,
        cancellation: CancellationToken | None = None,
    ) -> SearchResult[Any]:
        started = time.perf_counter()
        configuration.freeze()
        token = cancellation or CancellationToken()
        log = self._log.bind(entity=configuration.entity_name)
        stage = "validate"

        try:
            token.raise_if_cancelled(stage)
            effective = sanitize_request(request, configuration)
            plan = self.plan(effective, configuration)

            stage = "count"
            total = await token.run(store.count(plan), stage=stage)

            stage = "fetch"
            rows: list[ScoredRow[Any]] = []
            if plan.page.offset < total:
                rows = await token.run(store.fetch(plan), stage=stage)

            facets: dict[str, list[FacetValue]] | None = None
            if plan.facet_fields:
                stage = "facets"
                raw_facets = await token.run(store.facets(plan), stage=stage)
                facets = _facet_buckets(raw_facets, effective, configuration)

            token.raise_if_cancelled("assemble")
        except SearchCancelledError as exc:
            log.info("search.cancelled", stage=exc.stage, **exc.log_fields())
            raise
        except Exception:
            log.exception("search.failed", stage=stage)
            raise

        items = [_item(scored, plan.full_text, project) for scored in rows]
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        result: SearchResult[Any] = SearchResult(
            items=items,
            total_count=total,
            page_number=effective.page_number,
            page_size=effective.page_size,
            execution_time_ms=elapsed_ms,
            applied_filters=effective.filters,
            applied_sorts=effective.sorts,
            search_term=effective.search_term,
            facets=facets,
        )

        fields = {
            "full_text": plan.full_text,
            "term_length": len(effective.search_term or ""),
            "total_count": total,
            "page_number": effective.page_number,
            "page_size": effective.page_size,
            "returned": len(items),
            "elapsed_ms": elapsed_ms,
        }
        log.info("search.completed", **fields)
        threshold = self._settings.slow_search_threshold_ms
        if elapsed_ms > threshold:
            log.warning("search.slow", threshold_ms=threshold, **fields)
        return result

    def plan(self, request: SearchRequest, configuration: SearchConfiguration[Any]) -> SearchPlan:
        """Compile an already-sanitised request into a :class:`SearchPlan`."""
        predicate = PredicateBuilder(configuration).build(request.filters)

        if configuration.soft_delete_field is not None and not request.include_deleted:
            deleted_at = configuration.field(configuration.soft_delete_field)
            if deleted_at is not None:
                live = IsNull(deleted_at)
                predicate = live if predicate is None else predicate & live

        text_query = self._text_query(request, configuration)
        facet_fields = tuple(
            descriptor
            for descriptor in (configuration.field(name) for name in configuration.facet_fields)
            if descriptor is not None
        )
        return SearchPlan(
            page=PageRequest(page=request.page_number, size=request.page_size),
            predicate=predicate,
            text_query=text_query,
            min_relevance_score=request.min_relevance_score if text_query is not None else None,
            sort=compose_sort(request.sorts, configuration, relevance=text_query is not None),
            facet_fields=facet_fields,
        )

    def _text_query(self, request: SearchRequest, configuration: SearchConfiguration[Any]) -> FullTextQuery | None:
        term = request.search_term
        if not term or len(term) < configuration.min_search_term_length:
            return None
        fields = self._search_fields(request.search_fields, configuration)
        if not fields:
            return None
        highlight_fields = tuple(
            descriptor
            for descriptor in (configuration.field(name) for name in configuration.highlight_fields)
            if descriptor is not None
        )
        return FullTextQuery(
            term=term,
            language=configuration.language,
            fields=fields,
            highlight_fields=highlight_fields,
        )

    def _search_fields(
        self, requested: tuple[str, ...] | None, configuration: SearchConfiguration[Any]
    ) -> tuple[tuple[FieldDescriptor, SearchWeight], ...]:
        weighted: list[tuple[FieldDescriptor, SearchWeight]] = []
        for name, weight in configuration.searchable_fields.items():
            descriptor = configuration.field(name)
            if descriptor is not None:
                weighted.append((descriptor, weight))
        if not requested:
            return tuple(weighted)

        selected: set[str] = set()
        for name in requested:
            descriptor = configuration.searchable_field(name)
            if descriptor is None:
                self._log.debug(
                    "search.field_skipped",
                    entity=configuration.entity_name,
                    field=name,
                    reason="field is not searchable",
                )
                continue
            selected.add(descriptor.name)
        narrowed = [pair for pair in weighted if pair[0].name in selected]
        return tuple(narrowed or weighted)


def _item(scored: ScoredRow[Any], full_text: bool, project: Callable[[Any], Any] | None) -> SearchResultItem[Any]:
    data = project(scored.row) if project is not None else scored.row
    if not full_text:
        return SearchResultItem(data=data)
    score = max(0.0, float(scored.score or 0.0))
    return SearchResultItem(data=data, relevance_score=score, highlights=scored.highlights)


def facet_label(value: Any) -> str:
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def _facet_buckets(
    raw: dict[str, list[tuple[Any, int]]],
    request: SearchRequest,
    configuration: SearchConfiguration[Any],
) -> dict[str, list[FacetValue]]:
    buckets: dict[str, list[FacetValue]] = {}
    for name in configuration.facet_fields:
        selected = _selected_values(name, request, configuration)
        values = [
            FacetValue(value=label, count=count, is_selected=label.lower() in selected)
            for label, count in ((facet_label(value), count) for value, count in raw.get(name, ()) if value is not None)
        ]
        values.sort(key=lambda bucket: (-bucket.count, bucket.value))
        buckets[name] = values
    return buckets


def _selected_values(name: str, request: SearchRequest, configuration: SearchConfiguration[Any]) -> set[str]:
    selected: set[str] = set()
    for criteria in request.filters:
        descriptor = configuration.field(criteria.field)
        if descriptor is None or descriptor.name != name:
            continue
        if criteria.operator is FilterOperator.EQUALS and criteria.value is not None:
            selected.add(facet_label(criteria.value).lower())
        elif criteria.operator is FilterOperator.IN and isinstance(criteria.value, (list, tuple, set, frozenset)):
            selected.update(facet_label(v).lower() for v in criteria.value if v is not None)
    return selected


__all__ = ["SearchEngine", "SearchService", "facet_label"]
