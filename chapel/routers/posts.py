from fastapi import APIRouter, Depends, status

from ..auth.context import ActorContext
from ..auth.guard import AuditedGate, RequestMeta
from ..dependencies import get_actor_context, get_audited_gate, get_post_store, get_request_meta
from ..domain.ports.content import PostStore
from ..schemas.post import PostCreate, PostResponse, PostUpdate
from ..use_cases.posts.create_post import PostDraft, create_post
from ..use_cases.posts.delete_post import delete_post
from ..use_cases.posts.update_post import update_post

router = APIRouter(prefix="/posts", tags=["posts"])


def _draft(payload: PostCreate) -> PostDraft:
    return PostDraft(
        title=payload.title,
        content=payload.content,
        excerpt=payload.excerpt,
        tags=list(payload.tags),
    )


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    payload: PostCreate,
    actor: ActorContext = Depends(get_actor_context),
    gate: AuditedGate = Depends(get_audited_gate),
    post_store: PostStore = Depends(get_post_store),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> PostResponse:
    post = await create_post(gate, post_store, actor, _draft(payload), request=request_meta)
    return PostResponse.model_validate(post)


@router.put("/{post_id}", response_model=PostResponse)
async def update_post_endpoint(
    post_id: str,
    payload: PostUpdate,
    actor: ActorContext = Depends(get_actor_context),
    gate: AuditedGate = Depends(get_audited_gate),
    post_store: PostStore = Depends(get_post_store),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> PostResponse:
    post = await update_post(
        gate, post_store, actor, post_id, _draft(payload), request=request_meta
    )
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post_endpoint(
    post_id: str,
    actor: ActorContext = Depends(get_actor_context),
    gate: AuditedGate = Depends(get_audited_gate),
    post_store: PostStore = Depends(get_post_store),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> None:
    await delete_post(gate, post_store, actor, post_id, request=request_meta)
