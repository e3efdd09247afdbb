"""FastAPI adapter – FastAPIExceptionMapper."""
from __future__ import annotations

from typing import Any, Callable

from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

from cms_query.kernel.errors import (
    BaseError,
    DomainError,
    InfrastructureError,
    SearchCancelledError,
    ValidationError,
)
from cms_query.observability.logging import get_logger

# nginx's "client closed request"; there is no standard code for a cancelled call
CLIENT_CLOSED_REQUEST = 499


class FastAPIExceptionMapper:
    """Register search error → HTTP status-code mappings on a FastAPI app.

    Error body schema::

        {"code": "validation_error", "message": "...", "detail": {}, "errors": [...]}

    Mappings
    --------
    ``ValidationError``      → 400
    ``SearchCancelledError`` → 499
    ``InfrastructureError``  → 503
    ``DBAPIError``           → 503
    ``DomainError``          → 422
    """

    def __init__(self) -> None:
        # ORDER MATTERS: more-specific subtypes first
        self._map: list[tuple[type[Exception], int]] = [
            (ValidationError, 400),
            (SearchCancelledError, CLIENT_CLOSED_REQUEST),
            (InfrastructureError, 503),
            (DBAPIError, 503),
            (DomainError, 422),
        ]
        self._log = get_logger(__name__)

    @property
    def mappings(self) -> list[tuple[type[Exception], int]]:
        return list(self._map)

    def register(self, app: Any) -> None:
        """Register all error handlers on a ``FastAPI`` or ``Starlette`` app."""
        for exc_type, status in self._map:
            app.add_exception_handler(exc_type, self._make_handler(status))

    def _make_handler(self, status: int) -> Callable[[Any, Any], Any]:
        def handler(request: Any, exc: Any) -> Any:  # noqa: ARG001
            if isinstance(exc, BaseError):
                body = exc.public_dict()
            else:
                # driver messages can leak SQL and connection details
                body = {"code": "store_unavailable", "message": "The search store is unavailable", "detail": {}}
            if status >= 500:
                fields = exc.log_fields() if isinstance(exc, BaseError) else {"error_code": body["code"]}
                self._log.warning("search.http_error", status=status, **fields)
            return JSONResponse(status_code=status, content=body)

        return handler


__all__ = ["CLIENT_CLOSED_REQUEST", "FastAPIExceptionMapper"]
