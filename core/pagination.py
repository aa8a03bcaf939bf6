"""
Lodging Core — Page Slicing
============================
Offset pagination over an already-ordered list.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, List, Sequence, TypeVar

T = TypeVar("T")

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    current_page: int
    total_pages: int
    total: int

    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.current_page > 1

    def to_dict(self) -> dict:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total": self.total,
            "has_next_page": self.has_next_page,
            "has_prev_page": self.has_prev_page,
        }


def paginate(items: Sequence[T], page: int = 1, limit: int = 10) -> Page[T]:
    if not isinstance(page, int) or page < 1:
        raise ValueError("page must be >= 1.")
    if not isinstance(limit, int) or not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}.")
    start = (page - 1) * limit
    return Page(
        items=list(items[start:start + limit]),
        current_page=page,
        total_pages=math.ceil(len(items) / limit),
        total=len(items),
    )
