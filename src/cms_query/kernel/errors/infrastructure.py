"""Infrastructure errors – backing store failures."""

from __future__ import annotations

from typing import Any

from cms_query.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a business rule violation."""

    default_code = "infrastructure_error"


class StoreError(InfrastructureError):
    """The backing store failed to answer a count or fetch query.

    The engine itself lets driver errors propagate unchanged; this type is
    for callers and adapters that want to wrap them.
    """

    default_code = "store_error"

    def __init__(
        self,
        store: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Search store '{store}' failed", **kwargs)
        self.store = store


__all__ = ["InfrastructureError", "StoreError"]
