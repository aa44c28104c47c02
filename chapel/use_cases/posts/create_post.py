import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ...auth.context import ActorContext
from ...auth.gate import Action, Target
from ...auth.guard import AuditedGate, RequestMeta
from ...domain.content import PostRecord, default_excerpt
from ...domain.ports.content import PostStore
from ...errors import ValidationError


@dataclass(frozen=True)
class PostDraft:
    title: str
    content: str
    excerpt: str | None = None
    tags: list[str] = field(default_factory=list)


def _clean_draft(draft: PostDraft) -> PostDraft:
    title = (draft.title or "").strip()
    content = draft.content or ""
    if not title or not content.strip():
        raise ValidationError("Title and content are required")
    excerpt = (draft.excerpt or "").strip() or default_excerpt(content)
    tags = [tag.strip() for tag in draft.tags if tag and tag.strip()]
    return PostDraft(title=title, content=content, excerpt=excerpt, tags=tags)


async def _apply_create_post(
    post_store: PostStore, actor: ActorContext, draft: PostDraft
) -> PostRecord:
    try:
        cleaned = _clean_draft(draft)
        now = datetime.now(timezone.utc)
        post = await post_store.create(
            PostRecord(
                id=uuid.uuid4().hex,
                title=cleaned.title,
                content=cleaned.content,
                excerpt=cleaned.excerpt or "",
                tags=cleaned.tags,
                author=actor.name or actor.email or "",
                author_email=actor.email,
                created_at=now,
                updated_at=now,
            )
        )
        await post_store.commit()
        return post
    except Exception:
        await post_store.rollback()
        raise


async def create_post(
    gate: AuditedGate,
    post_store: PostStore,
    actor: ActorContext,
    draft: PostDraft,
    *,
    request: RequestMeta | None = None,
) -> PostRecord:
    return await gate.run(
        Action.POST_CREATE,
        actor,
        Target(type="post"),
        lambda: _apply_create_post(post_store, actor, draft),
        request=request,
        meta={"title": draft.title},
        success_meta=lambda post: {"post_id": post.id},
    )
