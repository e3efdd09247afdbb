"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError          (domain.py)
    │   └── ValidationError
    ├── ApplicationError     (application.py)
    │   └── SearchCancelledError
    └── InfrastructureError  (infrastructure.py)
        └── StoreError
"""

from cms_query.kernel.errors.application import ApplicationError, SearchCancelledError
from cms_query.kernel.errors.base import BaseError
from cms_query.kernel.errors.domain import DomainError, ValidationError
from cms_query.kernel.errors.infrastructure import InfrastructureError, StoreError

__all__ = [
    "ApplicationError",
    "BaseError",
    "DomainError",
    "InfrastructureError",
    "SearchCancelledError",
    "StoreError",
    "ValidationError",
]
