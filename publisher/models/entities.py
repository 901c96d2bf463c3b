# publisher/models/entities.py
import uuid
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class Record(BaseModel):
    """Stored record; serialised with camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    created_at: datetime
    updated_at: datetime

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Category(Record):
    name: str
    owner_id: str


class Article(Record):
    title: str
    content: str
    category_id: str
    author_id: str
    image_url: Optional[str] = None


class User(Record):
    username: str
    role: str
    password_hash: str = Field(exclude=True, repr=False)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
