from ...auth.context import ActorContext
from ...auth.gate import Action, Target
from ...auth.guard import AuditedGate, RequestMeta
from ...domain.ports.content import PostStore
from ...errors import NotFoundError
from .update_post import POST_NOT_FOUND


async def _apply_delete_post(post_store: PostStore, post_id: str) -> None:
    try:
        deleted = await post_store.delete(post_id)
        if not deleted:
            raise NotFoundError(POST_NOT_FOUND, details={"post_id": post_id})
        await post_store.commit()
    except Exception:
        await post_store.rollback()
        raise


async def delete_post(
    gate: AuditedGate,
    post_store: PostStore,
    actor: ActorContext,
    post_id: str,
    *,
    request: RequestMeta | None = None,
) -> None:
    await gate.ensure_authenticated(
        Action.POST_DELETE, actor, Target(type="post", id=post_id), request=request
    )
    existing = await post_store.get(post_id)
    if existing is None:
        raise NotFoundError(POST_NOT_FOUND, details={"post_id": post_id})

    target = Target(type="post", id=post_id, post_author_email=existing.author_email)
    await gate.run(
        Action.POST_DELETE,
        actor,
        target,
        lambda: _apply_delete_post(post_store, post_id),
        request=request,
        meta={"title": existing.title},
    )
