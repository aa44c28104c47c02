from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

EXCERPT_LENGTH = 200
MAX_COMMENT_LENGTH = 1000


@dataclass(frozen=True)
class PostRecord:
    id: str
    title: str
    content: str
    author: str
    author_email: str | None = None
    excerpt: str = ""
    tags: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class CommentRecord:
    id: str
    post_id: str
    content: str
    author: str
    author_email: str
    author_image: str | None = None
    created_at: datetime | None = None


def default_excerpt(content: str) -> str:
    return content[:EXCERPT_LENGTH] + "..."
