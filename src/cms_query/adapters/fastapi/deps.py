"""FastAPI adapter – search request dependency.

Parses the JSON body of a search endpoint into a :class:`SearchRequest` and
runs boundary validation before the handler sees it::

    @router.post("/users/search", openapi_extra=error_responses(400))
    async def search_users(request: SearchRequestDep, session: SessionDep):
        store = SqlAlchemySearchStore(session, User)
        result = await SearchService().search(store, request, user_search_config())
        return result.to_dict(serialize=UserDto.from_orm)

For per-entity strictness (reject fields outside the entity's allow-lists),
build a dependency with :func:`search_request_dependency`.
"""
from __future__ import annotations

from typing import Annotated, Any, Awaitable, Callable

from fastapi import Depends, Request

from cms_query.application.search.configuration import SearchConfiguration
from cms_query.application.search.query import SearchRequest
from cms_query.application.search.validator import SearchRequestValidator
from cms_query.kernel.errors import ValidationError


def search_request_dependency(
    configuration: Callable[[], SearchConfiguration[Any]] | None = None,
    validator: SearchRequestValidator | None = None,
) -> Callable[[Request], Awaitable[SearchRequest]]:
    """Return a FastAPI dependency yielding a validated :class:`SearchRequest`.

    *configuration* is a factory (configurations are built per request);
    when given, filters and sorts are checked against its allow-lists.
    """
    checker = validator or SearchRequestValidator()

    async def search_request_dep(request: Request) -> SearchRequest:
        try:
            payload = await request.json()
        except ValueError as exc:  # JSONDecodeError and UnicodeDecodeError
            raise ValidationError("Search request body is not valid JSON", cause=exc) from exc
        search_request = SearchRequest.from_dict(payload)
        checker.validate_or_raise(search_request, configuration() if configuration is not None else None)
        return search_request

    return search_request_dep


SearchRequestDep = Annotated[SearchRequest, Depends(search_request_dependency())]


_ERROR_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "code": {"type": "string"},
        "message": {"type": "string"},
        "detail": {"type": "object"},
        "errors": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"field": {"type": "string"}, "message": {"type": "string"}},
            },
        },
    },
    "required": ["code", "message"],
}

_STATUS_DESCRIPTIONS: dict[int, str] = {
    400: "Validation error",
    422: "Domain rule violated",
    499: "Search cancelled",
    500: "Internal server error",
    503: "Store unavailable",
}


def error_responses(*codes: int) -> dict[str, dict[str, object]]:
    """Build an OpenAPI ``responses`` dict for the given HTTP codes."""
    return {
        str(code): {
            "description": _STATUS_DESCRIPTIONS.get(code, "Error"),
            "content": {"application/json": {"schema": _ERROR_SCHEMA}},
        }
        for code in codes
    }


__all__ = ["SearchRequestDep", "error_responses", "search_request_dependency"]
