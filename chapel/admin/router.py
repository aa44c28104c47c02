"""
Admin router - user role management and the audit log viewer.

Every endpoint goes through the audited gate: the caller's role is resolved
from the user store on each request and every decision leaves an audit entry.
Admins cannot change or delete their own account from here.
"""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from ..auth.context import ActorContext
from ..auth.guard import AuditedGate, RequestMeta
from ..crud.audit_log import AuditLogRepository
from ..dependencies import (
    get_actor_context,
    get_audit_log_repository,
    get_audited_gate,
    get_request_meta,
    get_user_store,
)
from ..domain.ports.user import UserStore
from ..schemas.audit_log import AuditLogFilter, AuditLogResponse, Outcome
from ..schemas.user import (
    RoleUpdateRequest,
    UserListResponse,
    UserResponse,
    UserStatsResponse,
)
from ..use_cases.admin.list_audit_logs import list_audit_logs
from ..use_cases.admin.manage_users import (
    change_user_role,
    list_users_for_admin,
    remove_user,
)
from ..use_cases.users.manage_users import writer_emails

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


@router.get("/users", response_model=UserListResponse)
async def list_users_endpoint(
    stats: bool = Query(False),
    actor: ActorContext = Depends(get_actor_context),
    gate: AuditedGate = Depends(get_audited_gate),
    user_store: UserStore = Depends(get_user_store),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> UserListResponse:
    """List every user, oldest first.

    ``?stats=true`` adds per-role counts and the emails of all writers.
    """
    users, user_stats = await list_users_for_admin(
        gate, user_store, actor, request=request_meta
    )
    return UserListResponse(
        users=[UserResponse.from_record(user) for user in users],
        stats=(
            UserStatsResponse(**user_stats.to_dict(), writer_emails=writer_emails(users))
            if stats
            else None
        ),
    )


@router.put("/users/{email}/role", response_model=UserResponse)
async def update_user_role_endpoint(
    email: str,
    payload: RoleUpdateRequest,
    actor: ActorContext = Depends(get_actor_context),
    gate: AuditedGate = Depends(get_audited_gate),
    user_store: UserStore = Depends(get_user_store),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> UserResponse:
    record = await change_user_role(
        gate, user_store, actor, email, payload.role, request=request_meta
    )
    return UserResponse.from_record(record)


@router.delete("/users/{email}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_endpoint(
    email: str,
    actor: ActorContext = Depends(get_actor_context),
    gate: AuditedGate = Depends(get_audited_gate),
    user_store: UserStore = Depends(get_user_store),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> None:
    await remove_user(gate, user_store, actor, email, request=request_meta)


@router.get("/audit-logs", response_model=list[AuditLogResponse])
async def list_audit_logs_endpoint(
    action: str | None = Query(None),
    outcome: Outcome | None = Query(None),
    actor_email: str | None = Query(None),
    target_type: str | None = Query(None),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    actor: ActorContext = Depends(get_actor_context),
    gate: AuditedGate = Depends(get_audited_gate),
    repository: AuditLogRepository = Depends(get_audit_log_repository),
    request_meta: RequestMeta = Depends(get_request_meta),
) -> list[AuditLogResponse]:
    filters = AuditLogFilter(
        action=action,
        outcome=outcome,
        actor_email=actor_email,
        target_type=target_type,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
        offset=offset,
    )
    logs = await list_audit_logs(gate, repository, actor, filters, request=request_meta)
    return [AuditLogResponse.model_validate(log) for log in logs]
