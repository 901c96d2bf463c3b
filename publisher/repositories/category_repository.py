# publisher/repositories/category_repository.py
import logging
from typing import Optional, Dict, Any
from publisher.errors import ConflictError, DuplicateNameError
from publisher.models.entities import Category, new_id
from publisher.repositories.base import InMemoryRepository, reject_unknown_fields, require_text

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name",)


class CategoryRepository(InMemoryRepository[Category]):
    """Repository for Category entity operations."""

    entity_name = "Category"

    async def get_by_name(self, name: str) -> Optional[Category]:
        """Fetch single category by name, ignoring case."""
        record = self._find_by_name(name)
        return record.model_copy() if record else None

    async def create(self, name: str, owner_id: str, entity_id: Optional[str] = None) -> Category:
        """Create a new category at the end of the collection."""
        cleaned = require_text(name, "Category name")
        async with self._lock:
            self._ensure_unique(cleaned)
            if entity_id is not None and entity_id in self._records:
                raise ConflictError(f"Category id '{entity_id}' already exists")
            now = self._clock()
            category = Category(
                id=entity_id or new_id(),
                name=cleaned,
                owner_id=owner_id,
                created_at=now,
                updated_at=now,
            )
            self._records[category.id] = category
        logger.info(f"Category '{category.name}' created with ID {category.id}")
        return category.model_copy()

    async def update(self, category_id: str, fields: Dict[str, Any]) -> Category:
        """Update a category in place; only updated_at moves."""
        reject_unknown_fields(fields, UPDATABLE_FIELDS)
        async with self._lock:
            current = self._require(category_id)
            changes: Dict[str, Any] = {}
            if "name" in fields:
                cleaned = require_text(fields["name"], "Category name")
                self._ensure_unique(cleaned, exclude_id=category_id)
                changes["name"] = cleaned
            changes["updated_at"] = self._clock()
            updated = current.model_copy(update=changes)
            self._records[category_id] = updated
        logger.info(f"Category {category_id} updated")
        return updated.model_copy()

    async def delete(self, category_id: str) -> Category:
        """Delete a category. Articles referencing it are left untouched."""
        removed = await super().delete(category_id)
        logger.info(f"Category '{removed.name}' ({category_id}) deleted")
        return removed

    def _find_by_name(self, name: str, exclude_id: Optional[str] = None) -> Optional[Category]:
        wanted = (name or "").strip().lower()
        for record in self._records.values():
            if record.id != exclude_id and record.name.lower() == wanted:
                return record
        return None

    def _ensure_unique(self, name: str, exclude_id: Optional[str] = None) -> None:
        if self._find_by_name(name, exclude_id=exclude_id):
            logger.warning(f"Category '{name}' already exists")
            raise DuplicateNameError("Category with this name already exists")

    def _matches(self, category: Category, text: str) -> bool:
        return text in category.name.lower()
