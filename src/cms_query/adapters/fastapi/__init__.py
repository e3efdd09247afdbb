"""FastAPI adapter – search request dependency and error mapping."""
from cms_query.adapters.fastapi.deps import SearchRequestDep, error_responses, search_request_dependency
from cms_query.adapters.fastapi.exception_mapper import FastAPIExceptionMapper

__all__ = ["FastAPIExceptionMapper", "SearchRequestDep", "error_responses", "search_request_dependency"]
