# publisher/store.py
import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from publisher.config import config, CATEGORY_DELETE_POLICIES
from publisher.errors import CategoryInUseError, NotFoundError
from publisher.models.entities import Category, utc_now
from publisher.repositories import ArticleRepository, CategoryRepository, UserRepository

logger = logging.getLogger(__name__)

DEMO_OWNER_ID = "96c0157e-a321-4bb4-b1aa-12c791787f71"

DEMO_CATEGORIES = [
    {"entity_id": "57e92208-65fb-439e-b912-a47d52e0e2a2", "name": "Technology"},
    {"entity_id": "67e92208-65fb-439e-b912-a47d52e0e2a3", "name": "Development"},
]

DEMO_ARTICLES = [
    {
        "entity_id": "0ce84844-d0f7-4b13-a8fe-423147055c9c",
        "category_id": "57e92208-65fb-439e-b912-a47d52e0e2a2",
        "title": "Improved Installation and Frontend Hooks in Laravel Echo 2.1",
        "content": "<p>The Laravel team has released Echo 2.1 with a simpler installation flow "
                   "and new frontend hooks.</p>",
        "image_url": "https://s3.sellerpintar.com/articles/articles/"
                     "1748615926776-Big-Improvements-to-Laravel-Echo-2-1.png",
    },
    {
        "entity_id": "1ce84844-d0f7-4b13-a8fe-423147055c9d",
        "category_id": "67e92208-65fb-439e-b912-a47d52e0e2a3",
        "title": "React Hooks Best Practices",
        "content": "<p>Learn the best practices for React hooks.</p>",
        "image_url": "https://example.com/react-hooks.png",
    },
]


class Store:
    """The service's stores plus the rules that span more than one of them."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.users = UserRepository(clock)
        self.categories = CategoryRepository(clock)
        self.articles = ArticleRepository(self.categories, clock)
        self._initialized = False

    async def initialize(self, seed: Optional[bool] = None):
        """Load demo data on first startup."""
        if self._initialized:
            return
        if config.storage.seed_demo_data if seed is None else seed:
            await self._seed()
        self._initialized = True

    def reset(self) -> None:
        self.users.clear()
        self.categories.clear()
        self.articles.clear()
        self._initialized = False

    async def _seed(self):
        for category in DEMO_CATEGORIES:
            await self.categories.create(owner_id=DEMO_OWNER_ID, **category)
        for article in DEMO_ARTICLES:
            await self.articles.create(author_id=DEMO_OWNER_ID, **article)
        if config.auth.demo_admin_password:
            await self.users.add_user(
                config.auth.demo_admin_username,
                config.auth.demo_admin_password,
                "admin",
                entity_id=DEMO_OWNER_ID,
            )
        logger.info(
            f"Seeded {len(DEMO_CATEGORIES)} demo categories and {len(DEMO_ARTICLES)} demo articles"
        )

    async def delete_category(self, category_id: str, policy: Optional[str] = None) -> Category:
        """Delete a category, handling its articles according to ``policy``.

        restrict: refuse while any article references it.
        cascade:  delete the referencing articles first.
        keep:     leave the articles with a dangling category_id.
        """
        policy = policy or config.storage.category_delete_policy
        if policy not in CATEGORY_DELETE_POLICIES:
            raise ValueError(f"Unknown category delete policy '{policy}'")

        if await self.categories.get_by_id(category_id) is None:
            raise NotFoundError("Category not found")

        if policy == "restrict":
            in_use = await self.articles.references(category_id)
            if in_use:
                logger.warning(f"Refusing to delete category {category_id}: {in_use} articles reference it")
                raise CategoryInUseError(f"Category is used by {in_use} article(s)")
        elif policy == "cascade":
            await self.articles.delete_by_category(category_id)

        return await self.categories.delete(category_id)

    async def stats(self) -> Dict[str, int]:
        return {
            "article_count": await self.articles.count(),
            "category_count": await self.categories.count(),
            "user_count": await self.users.count(),
        }


# Singleton instance
store = Store()
