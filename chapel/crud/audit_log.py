from datetime import datetime
from typing import Any, Callable

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.ports.audit import AuditSink
from ..models.audit_log import AuditLog
from ..schemas.audit_log import ActionLog


class AuditLogRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        action: str,
        outcome: str,
        actor_email: str | None = None,
        actor_name: str | None = None,
        actor_role: str | None = None,
        target_type: str | None = None,
        target_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        meta: dict[str, Any] | None = None,
        error: str | None = None,
        created_at: datetime | None = None,
    ) -> AuditLog:
        audit_log = AuditLog(
            action=action,
            outcome=outcome,
            actor_email=actor_email,
            actor_name=actor_name,
            actor_role=actor_role,
            target_type=target_type,
            target_id=target_id,
            ip_address=ip_address,
            user_agent=user_agent,
            meta=meta,
            error=error,
        )
        if created_at is not None:
            audit_log.created_at = created_at
        self.session.add(audit_log)
        await self.session.commit()
        await self.session.refresh(audit_log)
        return audit_log

    async def list_by_filters(
        self,
        action: str | None = None,
        outcome: str | None = None,
        actor_email: str | None = None,
        target_type: str | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditLog]:
        query = select(AuditLog)

        conditions = []
        if action is not None:
            conditions.append(AuditLog.action == action)
        if outcome is not None:
            conditions.append(AuditLog.outcome == outcome)
        if actor_email is not None:
            conditions.append(AuditLog.actor_email == actor_email)
        if target_type is not None:
            conditions.append(AuditLog.target_type == target_type)
        if from_date is not None:
            conditions.append(AuditLog.created_at >= from_date)
        if to_date is not None:
            conditions.append(AuditLog.created_at <= to_date)

        if conditions:
            query = query.where(and_(*conditions))

        query = query.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())


class DatabaseAuditSink(AuditSink):
    """Writes audit entries through a dedicated session per entry.

    The isolated session keeps audit commits out of the caller's unit of work,
    so a rolled-back action still leaves its error entry behind.
    """

    def __init__(self, session_factory: Callable[[], Any]) -> None:
        self._session_factory = session_factory

    async def append(self, entry: ActionLog) -> None:
        async with self._session_factory() as session:
            await AuditLogRepository(session).create(
                action=entry.action,
                outcome=entry.outcome.value,
                actor_email=entry.actor.email if entry.actor else None,
                actor_name=entry.actor.name if entry.actor else None,
                actor_role=entry.actor.role if entry.actor else None,
                target_type=entry.target.type if entry.target else None,
                target_id=entry.target.id if entry.target else None,
                ip_address=entry.ip,
                user_agent=entry.user_agent,
                meta=entry.meta or None,
                error=entry.error,
                created_at=entry.timestamp,
            )
