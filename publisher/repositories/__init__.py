from publisher.repositories.article_repository import ArticleRepository
from publisher.repositories.category_repository import CategoryRepository
from publisher.repositories.user_repository import UserRepository

__all__ = ["ArticleRepository", "CategoryRepository", "UserRepository"]
