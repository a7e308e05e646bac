from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, Optional, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(cls, page: Optional[Any], limit: Optional[Any], *, default_limit: int = DEFAULT_PAGE_LIMIT) -> "PageRequest":
        # Bad values fall back to defaults, the same way the listing UI sends them.
        try:
            p = int(page) if page not in (None, "") else DEFAULT_PAGE
        except (TypeError, ValueError):
            p = DEFAULT_PAGE
        try:
            lim = int(limit) if limit not in (None, "") else default_limit
        except (TypeError, ValueError):
            lim = default_limit
        return cls(page=max(p, 1), limit=min(max(lim, 1), MAX_PAGE_LIMIT))


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    request: PageRequest

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.request.limit) if self.total else 0

    def meta(self) -> dict:
        return {
            "page": self.request.page,
            "limit": self.request.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }
