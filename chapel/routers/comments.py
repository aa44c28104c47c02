from fastapi import APIRouter, Depends, status

from ..auth.context import ActorContext
from ..auth.guard import AuditedGate, RequestMeta
from ..dependencies import (
    get_actor_context,
    get_audited_gate,
    get_comment_store,
    get_current_identity,
    get_post_store,
    get_request_meta,
)
from ..domain.ports.content import CommentStore, PostStore
from ..domain.users import Identity
from ..schemas.comment import CommentCreate, CommentResponse
from ..use_cases.comments.create_comment import create_comment
from ..use_cases.comments.delete_comment import delete_comment
from ..use_cases.comments.list_comments import list_comments

router = APIRouter(prefix="/posts/{post_id}/comments", tags=["comments"])


@router.get("", response_model=list[CommentResponse])
async def list_comments_endpoint(
    post_id: str,
    post_store: PostStore = Depends(get_post_store),
    comment_store: CommentStore = Depends(get_comment_store),
) -> list[CommentResponse]:
    comments = await list_comments(post_store, comment_store, post_id)
    return [CommentResponse.model_validate(comment) for comment in comments]


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment_endpoint(
    post_id: str,
    payload: CommentCreate,
    actor: ActorContext = Depends(get_actor_context),
    identity: Identity | None = Depends(get_current_identity),
    gate: AuditedGate = Depends(get_audited_gate),
    post_store: PostStore = Depends(get_post_store),
    comment_store: CommentStore = Depends(get_comment_store),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> CommentResponse:
    comment = await create_comment(
        gate,
        post_store,
        comment_store,
        actor,
        post_id,
        payload.content,
        author_image=identity.avatar_url if identity else None,
        request=request_meta,
    )
    return CommentResponse.model_validate(comment)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment_endpoint(
    post_id: str,
    comment_id: str,
    actor: ActorContext = Depends(get_actor_context),
    gate: AuditedGate = Depends(get_audited_gate),
    post_store: PostStore = Depends(get_post_store),
    comment_store: CommentStore = Depends(get_comment_store),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> None:
    await delete_comment(
        gate, post_store, comment_store, actor, post_id, comment_id, request=request_meta
    )
