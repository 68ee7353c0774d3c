from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class PaginationResult(Generic[T]):
    """One page of an in-memory collection."""
    items: List[T]
    total: int
    page: int
    limit: int
    has_more: bool
    next_page: Optional[int]

    def meta(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "has_more": self.has_more,
            "next_page": self.next_page,
        }


def paginate(items: Sequence[T], page: int, limit: int) -> PaginationResult[T]:
    """
    Slice an already-fetched collection into a 1-based page.

    An out-of-range page yields no items and ``has_more=False``; it is not an error.
    """
    start = (page - 1) * limit
    end = start + limit
    has_more = end < len(items)

    return PaginationResult(
        items=list(items[start:end]),
        total=len(items),
        page=page,
        limit=limit,
        has_more=has_more,
        next_page=page + 1 if has_more else None,
    )
