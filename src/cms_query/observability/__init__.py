"""Observability – structured logging for search execution."""
from cms_query.observability.logging import JsonLoggerFactory, Logger, get_logger

__all__ = ["JsonLoggerFactory", "Logger", "get_logger"]
