"""
cms_query – Declarative search/query engine for the CMS backend.

Import path convention::

    from cms_query.application.search import SearchConfiguration, SearchRequest, SearchService
    from cms_query.adapters.sqlalchemy import SqlAlchemySearchStore
    from cms_query.kernel.errors import ValidationError
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
