from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.content import PostRecord
from ..domain.ports.content import PostStore
from ..models.post import Post


def to_record(post: Post) -> PostRecord:
    return PostRecord(
        id=post.id,
        title=post.title,
        content=post.content,
        excerpt=post.excerpt,
        tags=list(post.tags or []),
        author=post.author,
        author_email=post.author_email,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


async def get_post(session: AsyncSession, post_id: str) -> Post | None:
    return await session.get(Post, post_id)


class PostRepository(PostStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, post_id: str) -> PostRecord | None:
        post = await get_post(self._session, post_id)
        return to_record(post) if post is not None else None

    async def create(self, post: PostRecord) -> PostRecord:
        row = Post(
            id=post.id,
            title=post.title,
            content=post.content,
            excerpt=post.excerpt,
            tags=list(post.tags),
            author=post.author,
            author_email=post.author_email,
        )
        self._session.add(row)
        await self._session.flush()
        await self._session.refresh(row)
        return to_record(row)

    async def update(self, post: PostRecord) -> PostRecord:
        row = await get_post(self._session, post.id)
        if row is None:
            raise LookupError(f"Post {post.id} disappeared during update")
        # Authorship is fixed at creation
        row.title = post.title
        row.content = post.content
        row.excerpt = post.excerpt
        row.tags = list(post.tags)
        await self._session.flush()
        await self._session.refresh(row)
        return to_record(row)

    async def delete(self, post_id: str) -> bool:
        row = await get_post(self._session, post_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
