"""Observability – get_logger helper and search-specific structlog processors."""
from __future__ import annotations

from typing import Any

import structlog

from cms_query.observability.logging.protocol import Logger

# event-dict keys that may carry raw user text
_TERM_KEYS = ("search_term", "term")


def get_logger(name: str | None = None, **initial_values: Any) -> Logger:
    """Return a structlog logger named *name*, with *initial_values* bound."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def redact_search_term(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Replace raw search text with its length.

    Free-text terms are user input and may carry personal data, so a rendered
    log line only ever shows ``term_length``.
    """
    for key in _TERM_KEYS:
        if key in event_dict:
            value = event_dict.pop(key)
            event_dict.setdefault("term_length", len(value) if isinstance(value, str) else 0)
    return event_dict


__all__ = ["get_logger", "redact_search_term"]
