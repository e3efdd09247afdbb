"""Application search – request sanitisation.

Sanitisation never rejects anything: it normalises the paging values and
the free-text term once, on entry, so every later stage sees clean input.
Rejecting hostile input is the boundary validator's job
(:mod:`cms_query.application.search.validator`).
"""
from __future__ import annotations

import dataclasses
import re
from typing import Any

from cms_query.application.pagination import PageRequest
from cms_query.application.search.configuration import SearchConfiguration
from cms_query.application.search.query import SearchRequest

MAX_SEARCH_TERM_LENGTH = 200

_WHITESPACE = re.compile(r"\s+")


def sanitize_search_term(term: str | None, max_length: int = MAX_SEARCH_TERM_LENGTH) -> str | None:
    """Strip single quotes, collapse whitespace and cap the length.

    Double quotes are kept: they delimit phrases in web-search syntax.
    Returns ``None`` for a missing or blank term. Applying the function to
    its own output returns that output unchanged.
    """
    if term is None:
        return None
    cleaned = _WHITESPACE.sub(" ", term.replace("'", " ")).strip()
    cleaned = cleaned[:max_length].rstrip()
    return cleaned or None


def sanitize_request(request: SearchRequest, configuration: SearchConfiguration[Any]) -> SearchRequest:
    """Return *request* with clamped paging and a sanitised search term."""
    page = PageRequest.clamped(
        request.page_number,
        request.page_size,
        default_size=configuration.default_page_size,
        max_size=configuration.max_page_size,
    )
    return dataclasses.replace(
        request,
        page_number=page.page,
        page_size=page.size,
        search_term=sanitize_search_term(request.search_term, configuration.max_search_term_length),
    )


__all__ = ["MAX_SEARCH_TERM_LENGTH", "sanitize_request", "sanitize_search_term"]
