from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.content import CommentRecord
from ..domain.ports.content import CommentStore
from ..models.comment import Comment


def to_record(comment: Comment) -> CommentRecord:
    return CommentRecord(
        id=comment.id,
        post_id=comment.post_id,
        content=comment.content,
        author=comment.author,
        author_email=comment.author_email,
        author_image=comment.author_image,
        created_at=comment.created_at,
    )


async def get_comment(session: AsyncSession, post_id: str, comment_id: str) -> Comment | None:
    result = await session.execute(
        select(Comment).where(Comment.post_id == post_id, Comment.id == comment_id)
    )
    return result.scalar_one_or_none()


async def list_comments(session: AsyncSession, post_id: str) -> list[Comment]:
    result = await session.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.desc())
    )
    return list(result.scalars().all())


class CommentRepository(CommentStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_post(self, post_id: str) -> list[CommentRecord]:
        return [to_record(comment) for comment in await list_comments(self._session, post_id)]

    async def get(self, post_id: str, comment_id: str) -> CommentRecord | None:
        comment = await get_comment(self._session, post_id, comment_id)
        return to_record(comment) if comment is not None else None

    async def create(self, comment: CommentRecord) -> CommentRecord:
        row = Comment(
            id=comment.id,
            post_id=comment.post_id,
            content=comment.content,
            author=comment.author,
            author_email=comment.author_email,
            author_image=comment.author_image,
        )
        self._session.add(row)
        await self._session.flush()
        await self._session.refresh(row)
        return to_record(row)

    async def delete(self, post_id: str, comment_id: str) -> bool:
        row = await get_comment(self._session, post_id, comment_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
