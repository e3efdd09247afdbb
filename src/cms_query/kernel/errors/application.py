"""Application-layer errors – outcomes of a use case that are not input faults."""

from __future__ import annotations

from typing import Any

from cms_query.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class SearchCancelledError(ApplicationError):
    """The caller cancelled a search before the page was assembled."""

    default_code = "search_cancelled"

    def __init__(
        self,
        message: str = "Search was cancelled",
        *,
        stage: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.stage = stage


__all__ = ["ApplicationError", "SearchCancelledError"]
