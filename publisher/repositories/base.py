# publisher/repositories/base.py
import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Dict, Any, Callable, Generic, TypeVar

from publisher.errors import NotFoundError, ValidationError
from publisher.models.entities import Record, utc_now

T = TypeVar("T", bound=Record)


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository class defining the standard store interface."""

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[T]:
        """Retrieve a single entity by its ID."""
        pass

    @abstractmethod
    async def get_all(
        self, offset: int = 0, limit: Optional[int] = None, **filters: Any
    ) -> List[T]:
        """Retrieve a range of entities in storage order with optional filters."""
        pass

    @abstractmethod
    async def update(self, entity_id: str, fields: Dict[str, Any]) -> T:
        """Update an existing entity and return the updated version."""
        pass

    @abstractmethod
    async def delete(self, entity_id: str) -> T:
        """Delete an entity and return the removed record."""
        pass

    @abstractmethod
    async def count(self, **filters: Any) -> int:
        """Count entities matching the given filters."""
        pass

    @abstractmethod
    async def search(self, query: str, **filters: Any) -> List[T]:
        """Return every entity matching a free-text query, in storage order."""
        pass


class InMemoryRepository(BaseRepository[T]):
    """Ordered in-memory collection owned by a single writer.

    Mutations run under ``self._lock``; every record handed out is a copy.
    """

    entity_name = "Entity"

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._records: Dict[str, T] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def clear(self) -> None:
        self._records.clear()

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        record = self._records.get(entity_id)
        return record.model_copy() if record else None

    async def get_all(
        self, offset: int = 0, limit: Optional[int] = None, **filters: Any
    ) -> List[T]:
        records = await self._apply_filters(list(self._records.values()), **filters)
        end = None if limit is None else offset + limit
        return [r.model_copy() for r in records[offset:end]]

    async def count(self, **filters: Any) -> int:
        records = await self._apply_filters(list(self._records.values()), **filters)
        return len(records)

    async def search(self, query: str, **filters: Any) -> List[T]:
        text = normalize_query(query)
        records = list(self._records.values())
        if text:
            records = [r for r in records if self._matches(r, text)]
        records = await self._apply_filters(records, **filters)
        return [r.model_copy() for r in records]

    async def delete(self, entity_id: str) -> T:
        async with self._lock:
            record = self._records.pop(entity_id, None)
        if record is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return record

    def _require(self, entity_id: str) -> T:
        record = self._records.get(entity_id)
        if record is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return record

    def _matches(self, record: T, text: str) -> bool:
        """Case-insensitive match of an already lower-cased query."""
        raise NotImplementedError

    async def _apply_filters(self, records: List[T], **filters: Any) -> List[T]:
        if filters:
            raise ValidationError(f"Unsupported filters: {', '.join(sorted(filters))}")
        return records


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().lower()


def require_text(value: Optional[str], field_name: str) -> str:
    """Trim a required string field, rejecting empty values."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def reject_unknown_fields(fields: Dict[str, Any], allowed) -> None:
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
