from ...auth.context import ActorContext
from ...auth.gate import Action, Target
from ...auth.guard import AuditedGate, RequestMeta
from ...domain.ports.content import CommentStore, PostStore
from ...errors import NotFoundError
from ..posts.update_post import POST_NOT_FOUND

COMMENT_NOT_FOUND = "Comment not found"


async def _apply_delete_comment(comment_store: CommentStore, post_id: str, comment_id: str) -> None:
    try:
        deleted = await comment_store.delete(post_id, comment_id)
        if not deleted:
            raise NotFoundError(COMMENT_NOT_FOUND, details={"comment_id": comment_id})
        await comment_store.commit()
    except Exception:
        await comment_store.rollback()
        raise


async def delete_comment(
    gate: AuditedGate,
    post_store: PostStore,
    comment_store: CommentStore,
    actor: ActorContext,
    post_id: str,
    comment_id: str,
    *,
    request: RequestMeta | None = None,
) -> None:
    """Delete a comment as an admin, the post's author or the comment's author."""
    await gate.ensure_authenticated(
        Action.COMMENT_DELETE, actor, Target(type="comment", id=comment_id), request=request
    )
    post = await post_store.get(post_id)
    if post is None:
        raise NotFoundError(POST_NOT_FOUND, details={"post_id": post_id})
    comment = await comment_store.get(post_id, comment_id)
    if comment is None:
        raise NotFoundError(COMMENT_NOT_FOUND, details={"comment_id": comment_id})

    target = Target(
        type="comment",
        id=comment_id,
        post_author_email=post.author_email,
        comment_author_email=comment.author_email,
    )
    await gate.run(
        Action.COMMENT_DELETE,
        actor,
        target,
        lambda: _apply_delete_comment(comment_store, post_id, comment_id),
        request=request,
        meta={"post_id": post_id},
    )
