# publisher/models/schemas.py
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthRequest(BaseModel):
    action: Literal["register", "login"]
    username: str = Field(..., max_length=100, description="Username for authentication")
    password: str = Field(..., max_length=200, description="Password for authentication")
    role: Optional[str] = Field(None, max_length=20)


class CategoryCreate(CamelModel):
    # 빈 이름은 저장소에서 ValidationError로 거부한다
    name: str = Field(..., max_length=50)


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=50)


class ArticleCreate(CamelModel):
    title: str = Field(..., max_length=200)
    content: str = Field(..., max_length=50000)
    category_id: str = Field(..., max_length=64)
    image_url: Optional[str] = Field(None, max_length=2048)


class ArticleUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, max_length=50000)
    category_id: Optional[str] = Field(None, max_length=64)
    image_url: Optional[str] = Field(None, max_length=2048)
