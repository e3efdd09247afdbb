"""Root error class for the cms_query error hierarchy.

Every error the engine raises on purpose derives from :class:`BaseError`.
Each one carries a stable machine-readable ``code`` that HTTP adapters and
log pipelines can switch on without parsing messages.
"""

from __future__ import annotations

import json
from typing import Any


class BaseError(Exception):
    """Root of the error hierarchy.

    Args:
        message: Human-readable description.
        code: Machine-readable slug (defaults to ``default_code``).
        detail: Extra context, kept JSON-friendly.
        cause: Lower-level exception this error wraps, if any.
    """

    default_code: str = "base_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = dict(detail or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self, *, include_cause: bool = True) -> dict[str, Any]:
        """Serialise to a plain dict.

        ``cause`` is rendered with ``repr`` and only present when set and
        *include_cause* is true.
        """
        payload: dict[str, Any] = {"code": self.code, "message": self.message, "detail": self.detail}
        if include_cause and self.cause is not None:
            payload["cause"] = repr(self.cause)
        return payload

    def public_dict(self) -> dict[str, Any]:
        """The body safe to hand to an API client (no wrapped cause)."""
        return self.to_dict(include_cause=False)

    def log_fields(self) -> dict[str, Any]:
        """Key/value pairs for a structured log event about this error."""
        fields: dict[str, Any] = {"error_code": self.code}
        if self.cause is not None:
            fields["error_cause"] = type(self.cause).__name__
        return fields


__all__ = ["BaseError"]
