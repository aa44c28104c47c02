from __future__ import annotations

from typing import Protocol

from ..content import CommentRecord, PostRecord


class PostStore(Protocol):
    async def get(self, post_id: str) -> PostRecord | None:
        ...

    async def create(self, post: PostRecord) -> PostRecord:
        ...

    async def update(self, post: PostRecord) -> PostRecord:
        ...

    async def delete(self, post_id: str) -> bool:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class CommentStore(Protocol):
    async def list_for_post(self, post_id: str) -> list[CommentRecord]:
        ...

    async def get(self, post_id: str, comment_id: str) -> CommentRecord | None:
        ...

    async def create(self, comment: CommentRecord) -> CommentRecord:
        ...

    async def delete(self, post_id: str, comment_id: str) -> bool:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
