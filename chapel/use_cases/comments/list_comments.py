from ...domain.content import CommentRecord
from ...domain.ports.content import CommentStore, PostStore
from ...errors import NotFoundError
from ..posts.update_post import POST_NOT_FOUND


async def list_comments(
    post_store: PostStore, comment_store: CommentStore, post_id: str
) -> list[CommentRecord]:
    if await post_store.get(post_id) is None:
        raise NotFoundError(POST_NOT_FOUND, details={"post_id": post_id})
    return await comment_store.list_for_post(post_id)
