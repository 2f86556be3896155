from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Mapping, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    """1-based page number plus page size, clamped to MAX_PAGE_SIZE."""

    page: int = 1
    size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "PageRequest":
        def _int(name: str, default: int) -> int:
            try:
                return int(args.get(name, default))
            except (TypeError, ValueError):
                return default

        page = max(_int("page", 1), 1)
        size = min(max(_int("size", DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
        return cls(page=page, size=size)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    size: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total + self.size - 1) // self.size

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def map(self, fn) -> "Page":
        return Page(items=[fn(i) for i in self.items], page=self.page, size=self.size, total=self.total)

    def to_dict(self) -> dict:
        return {
            "items": self.items,
            "page": self.page,
            "size": self.size,
            "total": self.total,
            "total_pages": self.total_pages,
        }


def paginate(items: Sequence[T], page_request: PageRequest) -> Page[T]:
    """Slice an already-loaded sequence into a page."""
    start = page_request.offset
    return Page(
        items=list(items[start : start + page_request.limit]),
        page=page_request.page,
        size=page_request.size,
        total=len(items),
    )
