"""Observability – structured logging ports and helpers."""
from cms_query.observability.logging.factory import JsonLoggerFactory
from cms_query.observability.logging.processors import get_logger, redact_search_term
from cms_query.observability.logging.protocol import Logger

__all__ = ["JsonLoggerFactory", "Logger", "get_logger", "redact_search_term"]
