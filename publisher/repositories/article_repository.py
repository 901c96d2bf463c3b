# publisher/repositories/article_repository.py
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Callable
from publisher.errors import ConflictError, NotFoundError, ValidationError
from publisher.models.entities import Article, new_id, utc_now
from publisher.repositories.base import (
    InMemoryRepository,
    normalize_query,
    reject_unknown_fields,
    require_text,
)
from publisher.repositories.category_repository import CategoryRepository

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "content", "category_id", "image_url")


class ArticleRepository(InMemoryRepository[Article]):
    """Repository for Article entity operations."""

    entity_name = "Article"

    def __init__(self, categories: CategoryRepository, clock: Callable[[], datetime] = utc_now):
        super().__init__(clock)
        self.categories = categories

    async def create(
        self,
        title: str,
        content: str,
        category_id: str,
        author_id: str,
        image_url: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> Article:
        """Create a new article. category_id is not checked against the category store."""
        values = {
            "title": require_text(title, "Title"),
            "content": _require_content(content),
            "category_id": require_text(category_id, "Category"),
            "author_id": require_text(author_id, "Author"),
            "image_url": image_url or None,
        }
        async with self._lock:
            if entity_id is not None and entity_id in self._records:
                raise ConflictError(f"Article id '{entity_id}' already exists")
            now = self._clock()
            article = Article(id=entity_id or new_id(), created_at=now, updated_at=now, **values)
            self._records[article.id] = article
        logger.info(f"Article {article.id} created by author {article.author_id}")
        return article.model_copy()

    async def update(self, article_id: str, fields: Dict[str, Any]) -> Article:
        reject_unknown_fields(fields, UPDATABLE_FIELDS)
        changes: Dict[str, Any] = {}
        if "title" in fields:
            changes["title"] = require_text(fields["title"], "Title")
        if "content" in fields:
            changes["content"] = _require_content(fields["content"])
        if "category_id" in fields:
            changes["category_id"] = require_text(fields["category_id"], "Category")
        if "image_url" in fields:
            changes["image_url"] = fields["image_url"] or None

        async with self._lock:
            current = self._require(article_id)
            changes["updated_at"] = self._clock()
            updated = current.model_copy(update=changes)
            self._records[article_id] = updated
        logger.info(f"Article {article_id} updated")
        return updated.model_copy()

    async def delete(self, article_id: str) -> Article:
        removed = await super().delete(article_id)
        logger.info(f"Article {article_id} deleted")
        return removed

    async def search(self, query: str, **filters: Any) -> List[Article]:
        """Match title or content, plus every article in a category whose name matches."""
        text = normalize_query(query)
        records = list(self._records.values())
        if text:
            category_ids = {c.id for c in await self.categories.search(text)}
            records = [
                a for a in records
                if self._matches(a, text) or a.category_id in category_ids
            ]
        records = await self._apply_filters(records, **filters)
        return [r.model_copy() for r in records]

    async def filter_by_category(self, category_id: str) -> List[Article]:
        """Exact match on category_id; the category itself must exist."""
        return await self.search("", category_id=category_id)

    async def references(self, category_id: str) -> int:
        """Number of articles pointing at a category, existing or not."""
        return sum(1 for a in self._records.values() if a.category_id == category_id)

    async def delete_by_category(self, category_id: str) -> List[Article]:
        async with self._lock:
            doomed = [a for a in self._records.values() if a.category_id == category_id]
            for article in doomed:
                del self._records[article.id]
        if doomed:
            logger.info(f"Deleted {len(doomed)} articles of category {category_id}")
        return doomed

    def _matches(self, article: Article, text: str) -> bool:
        return text in article.title.lower() or text in article.content.lower()

    async def _apply_filters(self, records: List[Article], **filters: Any) -> List[Article]:
        category_id = filters.pop("category_id", None)
        records = await super()._apply_filters(records, **filters)
        if category_id is None:
            return records
        if await self.categories.get_by_id(category_id) is None:
            raise NotFoundError("Invalid category")
        return [a for a in records if a.category_id == category_id]


def _require_content(content: Optional[str]) -> str:
    # markup is kept as given; only blank content is rejected
    if content is None or not str(content).strip():
        raise ValidationError("Content is required")
    return str(content)
