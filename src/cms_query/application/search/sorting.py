"""Application search – sort composition."""
from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from typing import Any

from cms_query.application.search.configuration import FieldDescriptor, SearchConfiguration
from cms_query.application.search.query import SortCriteria
from cms_query.observability.logging import get_logger

_log = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class SortKey:
    field: FieldDescriptor
    descending: bool = False


@dataclasses.dataclass(frozen=True)
class SortSpec:
    """Ordering for one search.

    When ``relevance_first`` is set, rows are ordered by relevance score
    descending and ``keys`` only break ties, first key first.
    """

    keys: tuple[SortKey, ...] = ()
    relevance_first: bool = False


def compose_sort(
    sorts: Sequence[SortCriteria],
    configuration: SearchConfiguration[Any],
    *,
    relevance: bool = False,
) -> SortSpec:
    """Resolve requested sorts against the sortable allow-list.

    Unknown or non-sortable fields are dropped silently. If no requested
    sort survives, the configuration's default sort (when set) is used, both
    as the primary order on the plain path and as the tie-break under
    relevance ranking. A field named twice keeps its first position.
    """
    keys: list[SortKey] = []
    seen: set[str] = set()
    for criteria in sorts:
        field = configuration.sortable_field(criteria.field)
        if field is None:
            _log.debug(
                "search.sort_skipped",
                entity=configuration.entity_name,
                field=criteria.field,
                direction=criteria.direction.value,
                reason="field is not sortable",
            )
            continue
        if field.name in seen:
            continue
        seen.add(field.name)
        keys.append(SortKey(field, criteria.descending))

    if not keys and configuration.default_sort_field is not None:
        default = configuration.field(configuration.default_sort_field)
        if default is not None:
            keys.append(SortKey(default, configuration.default_sort_descending))

    return SortSpec(keys=tuple(keys), relevance_first=relevance)


__all__ = ["SortKey", "SortSpec", "compose_sort"]
