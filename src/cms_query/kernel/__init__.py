"""Kernel – framework-agnostic building blocks."""

from cms_query.kernel.errors import (
    ApplicationError,
    BaseError,
    DomainError,
    InfrastructureError,
    SearchCancelledError,
    StoreError,
    ValidationError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "DomainError",
    "InfrastructureError",
    "SearchCancelledError",
    "StoreError",
    "ValidationError",
]
