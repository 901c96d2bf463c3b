from publisher.models.entities import Article, Category, User

__all__ = ["Article", "Category", "User"]
