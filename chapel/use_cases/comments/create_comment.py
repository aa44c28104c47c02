import uuid
from datetime import datetime, timezone

from ...auth.context import ActorContext
from ...auth.gate import Action, Target
from ...auth.guard import AuditedGate, RequestMeta
from ...domain.content import MAX_COMMENT_LENGTH, CommentRecord
from ...domain.ports.content import CommentStore, PostStore
from ...errors import NotFoundError, ValidationError
from ..posts.update_post import POST_NOT_FOUND


def clean_comment_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Comment content is required")
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError(
            f"Comment must be at most {MAX_COMMENT_LENGTH} characters",
            details={"max_length": MAX_COMMENT_LENGTH},
        )
    return text


async def _apply_create_comment(
    comment_store: CommentStore,
    actor: ActorContext,
    post_id: str,
    content: str,
    author_image: str | None,
) -> CommentRecord:
    try:
        comment = await comment_store.create(
            CommentRecord(
                id=uuid.uuid4().hex,
                post_id=post_id,
                content=clean_comment_content(content),
                author=actor.name or actor.email or "",
                author_email=actor.email or "",
                author_image=author_image,
                created_at=datetime.now(timezone.utc),
            )
        )
        await comment_store.commit()
        return comment
    except Exception:
        await comment_store.rollback()
        raise


async def create_comment(
    gate: AuditedGate,
    post_store: PostStore,
    comment_store: CommentStore,
    actor: ActorContext,
    post_id: str,
    content: str,
    *,
    author_image: str | None = None,
    request: RequestMeta | None = None,
) -> CommentRecord:
    await gate.ensure_authenticated(
        Action.COMMENT_CREATE, actor, Target(type="comment"), request=request
    )
    post = await post_store.get(post_id)
    if post is None:
        raise NotFoundError(POST_NOT_FOUND, details={"post_id": post_id})

    return await gate.run(
        Action.COMMENT_CREATE,
        actor,
        Target(type="comment", post_author_email=post.author_email),
        lambda: _apply_create_comment(comment_store, actor, post_id, content, author_image),
        request=request,
        meta={"post_id": post_id},
        success_meta=lambda comment: {"comment_id": comment.id},
    )
