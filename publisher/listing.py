# publisher/listing.py
"""Pagination and filtering shared by every list endpoint.

``paginate`` slices an already filtered sequence. ``ListingService`` decides
where the filtering happens:

* when an in-memory transform is active (free-text query, extra predicate or
  explicit ordering) every matching row is fetched in one pass and sliced here,
  because substring matching has to see all candidates before a page is cut;
* otherwise the page is requested from the repository directly with the
  offset/limit forwarded as-is.

Both branches return the same page for the same store state.
"""
import math
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from publisher.errors import ValidationError
from publisher.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class ListingQuery:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    text_query: Optional[str] = None
    category_id: Optional[str] = None

    def __post_init__(self):
        _check_positive(self.page, "page")
        _check_positive(self.page_size, "pageSize")
        # blank strings mean "no filter"
        object.__setattr__(self, "text_query", (self.text_query or "").strip() or None)
        object.__setattr__(self, "category_id", (self.category_id or "").strip() or None)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def filters(self) -> Dict[str, Any]:
        return {"category_id": self.category_id} if self.category_id else {}


@dataclass(frozen=True)
class ListingResult(Generic[T]):
    items: List[T]
    total_matching: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_matching / self.page_size))

    def to_envelope(self, serialize: Optional[Callable[[T], Any]] = None) -> Dict[str, Any]:
        """Fixed response body: {data, total, page, limit, totalPages}."""
        serialize = serialize or (lambda item: item)
        return {
            "data": [serialize(item) for item in self.items],
            "total": self.total_matching,
            "page": self.page,
            "limit": self.page_size,
            "totalPages": self.total_pages,
        }


def paginate(items: Sequence[T], page: int, page_size: int) -> ListingResult[T]:
    """Cut one page out of ``items``. A page past the end is empty, not an error."""
    _check_positive(page, "page")
    _check_positive(page_size, "pageSize")
    start = (page - 1) * page_size
    return ListingResult(
        items=list(items[start:start + page_size]),
        total_matching=len(items),
        page=page,
        page_size=page_size,
    )


class ListingService(Generic[T]):
    """One page of a repository's records plus the total matching count."""

    def __init__(self, repository: BaseRepository):
        self.repository = repository

    async def list(
        self,
        query: ListingQuery,
        predicate: Optional[Callable[[T], bool]] = None,
        sort_key: Optional[Callable[[T], Any]] = None,
        reverse: bool = False,
    ) -> ListingResult[T]:
        if query.text_query is not None or predicate is not None or sort_key is not None:
            return await self._scan(query, predicate, sort_key, reverse)
        return await self._range(query)

    async def _scan(self, query, predicate, sort_key, reverse) -> ListingResult[T]:
        items = await self.repository.search(query.text_query or "", **query.filters)
        if predicate is not None:
            items = [item for item in items if predicate(item)]
        if sort_key is not None:
            items = sorted(items, key=sort_key, reverse=reverse)
        logger.debug(
            f"Full scan listing (q={query.text_query!r}, filters={query.filters}) matched {len(items)} rows"
        )
        return paginate(items, query.page, query.page_size)

    async def _range(self, query: ListingQuery) -> ListingResult[T]:
        total = await self.repository.count(**query.filters)
        items = await self.repository.get_all(
            offset=query.offset, limit=query.page_size, **query.filters
        )
        return ListingResult(items=items, total_matching=total, page=query.page, page_size=query.page_size)


def _check_positive(value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name} must be a positive integer")
