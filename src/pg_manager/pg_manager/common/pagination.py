from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from ..core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from .validators import require_int


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "PageRequest":
        page = require_int(args.get("page", 1), "page", min_value=1)
        limit = require_int(args.get("limit", DEFAULT_PAGE_LIMIT), "limit", min_value=1, max_value=MAX_PAGE_LIMIT)
        return cls(page=page, limit=limit)


@dataclass(frozen=True)
class Page:
    items: list
    total: int
    request: PageRequest

    def pagination(self) -> dict:
        return {
            "page": self.request.page,
            "limit": self.request.limit,
            "total": self.total,
            "totalPages": math.ceil(self.total / self.request.limit) if self.total else 0,
        }
