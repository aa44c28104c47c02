from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    title: str = Field(..., max_length=255)
    content: str
    excerpt: str | None = None
    tags: list[str] = Field(default_factory=list)


class PostUpdate(PostCreate):
    pass


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    excerpt: str
    tags: list[str]
    author: str
    author_email: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
