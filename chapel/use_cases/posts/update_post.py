from dataclasses import replace
from datetime import datetime, timezone

from ...auth.context import ActorContext
from ...auth.gate import Action, Target
from ...auth.guard import AuditedGate, RequestMeta
from ...domain.content import PostRecord
from ...domain.ports.content import PostStore
from ...errors import NotFoundError
from .create_post import PostDraft, _clean_draft

POST_NOT_FOUND = "Post not found"


async def _apply_update_post(
    post_store: PostStore, existing: PostRecord, draft: PostDraft
) -> PostRecord:
    try:
        cleaned = _clean_draft(draft)
        post = await post_store.update(
            replace(
                existing,
                title=cleaned.title,
                content=cleaned.content,
                excerpt=cleaned.excerpt or "",
                tags=cleaned.tags,
                updated_at=datetime.now(timezone.utc),
            )
        )
        await post_store.commit()
        return post
    except Exception:
        await post_store.rollback()
        raise


async def update_post(
    gate: AuditedGate,
    post_store: PostStore,
    actor: ActorContext,
    post_id: str,
    draft: PostDraft,
    *,
    request: RequestMeta | None = None,
) -> PostRecord:
    """Edit a post. Only its author or an admin may do so; authorship never changes."""
    await gate.ensure_authenticated(
        Action.POST_EDIT, actor, Target(type="post", id=post_id), request=request
    )
    existing = await post_store.get(post_id)
    if existing is None:
        raise NotFoundError(POST_NOT_FOUND, details={"post_id": post_id})

    target = Target(type="post", id=post_id, post_author_email=existing.author_email)
    return await gate.run(
        Action.POST_EDIT,
        actor,
        target,
        lambda: _apply_update_post(post_store, existing, draft),
        request=request,
        meta={"title": draft.title},
    )
