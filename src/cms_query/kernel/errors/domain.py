"""Domain errors – rejected input at the search request boundary."""

from __future__ import annotations

from typing import Any

from cms_query.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a business rule is violated."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """Input data does not meet validation rules.

    ``errors`` is a list of field-level failures, each a
    ``{"field": ..., "message": ...}`` dict.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    def to_dict(self, *, include_cause: bool = True) -> dict[str, Any]:
        base = super().to_dict(include_cause=include_cause)
        base["errors"] = self.errors
        return base

    def log_fields(self) -> dict[str, Any]:
        return {**super().log_fields(), "failed_fields": [e.get("field") for e in self.errors]}


__all__ = ["DomainError", "ValidationError"]
