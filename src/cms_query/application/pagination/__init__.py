"""Application pagination – offset paging primitives."""
from cms_query.application.pagination.page_request import PageRequest

__all__ = ["PageRequest"]
