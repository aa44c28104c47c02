from ...auth.context import ActorContext
from ...auth.gate import Action, Target
from ...auth.guard import AuditedGate, RequestMeta
from ...crud.audit_log import AuditLogRepository
from ...models.audit_log import AuditLog
from ...schemas.audit_log import AuditLogFilter


async def list_audit_logs(
    gate: AuditedGate,
    repository: AuditLogRepository,
    actor: ActorContext,
    filters: AuditLogFilter,
    *,
    request: RequestMeta | None = None,
) -> list[AuditLog]:
    async def operation() -> list[AuditLog]:
        return await repository.list_by_filters(
            action=filters.action,
            outcome=filters.outcome.value if filters.outcome else None,
            actor_email=filters.actor_email,
            target_type=filters.target_type,
            from_date=filters.from_date,
            to_date=filters.to_date,
            limit=filters.limit,
            offset=filters.offset,
        )

    return await gate.run(
        Action.AUDIT_VIEW,
        actor,
        Target(type="audit_log"),
        operation,
        request=request,
        meta=filters.model_dump(mode="json", exclude_none=True),
        success_meta=lambda logs: {"count": len(logs)},
    )
