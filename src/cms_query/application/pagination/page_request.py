"""Application pagination – PageRequest."""
from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True)
class PageRequest:
    """Offset-based pagination parameters."""
    page: int = 1
    size: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.size < 1:
            raise ValueError("size must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size

    @classmethod
    def clamped(cls, page: int, size: int, *, default_size: int, max_size: int) -> "PageRequest":
        """Build a request from raw client values without rejecting any of them.

        Page numbers below 1 become 1; page sizes below 1 fall back to
        *default_size*; page sizes above *max_size* are capped.
        """
        effective_page = page if page >= 1 else 1
        effective_size = size if size >= 1 else default_size
        effective_size = max(1, min(effective_size, max_size))
        return cls(page=effective_page, size=effective_size)


__all__ = ["PageRequest"]
