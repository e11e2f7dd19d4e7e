from dataclasses import dataclass
import math
from typing import Any, Sequence


@dataclass(frozen=True)
class Pagination:
    """
    A validated page request.

    Out-of-range values are clamped, never rejected:
        page < 1            -> 1
        page_size < 1       -> 1
        page_size > maximum -> maximum
    """
    page: int
    page_size: int

    @classmethod
    def clamp(cls, page: int | None, page_size: int | None, max_page_size: int) -> "Pagination":
        page = page if page is not None and page >= 1 else 1
        if page_size is None or page_size < 1:
            page_size = 1
        return cls(page=page, page_size=min(page_size, max(max_page_size, 1)))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def to_page(self, items: Sequence[Any], total: int) -> dict:
        total_pages = math.ceil(total / self.page_size) if total else 0
        return {
            "items": list(items),
            "total": total,
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": total_pages,
            "hasNextPage": self.page < total_pages,
            "hasPrevPage": self.page > 1,
        }
