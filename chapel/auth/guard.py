"""
Audited gate: the single place where authorization decisions are enforced
and audited.

Every call to ``AuditedGate.run`` produces exactly one ActionLog entry:
``denied`` before any side effect, or ``success``/``error`` once the guarded
operation has finished.
"""
from __future__ import annotations

import ipaddress
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from ..errors import AccessDeniedError, AuthError
from ..schemas.audit_log import MAX_IP_LENGTH, ActionLog, AuditActor, AuditTarget, Outcome
from ..services.audit.audit_service import AuditService
from .context import ActorContext
from .gate import Action, Decision, DenyReason, Target, authorize

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNKNOWN_IP = "unknown"


@dataclass(frozen=True)
class RequestMeta:
    ip: str = UNKNOWN_IP
    user_agent: str | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], client_host: str | None = None) -> RequestMeta:
        """Client IP from the first valid forwarded entry, then the peer.

        Header values that do not parse as an address are ignored.
        """
        candidates = [
            (headers.get("x-forwarded-for") or "").split(",")[0],
            headers.get("x-real-ip") or "",
        ]
        ip = next((value for value in map(_valid_ip, candidates) if value), None)
        if ip is None:
            ip = (client_host or UNKNOWN_IP)[:MAX_IP_LENGTH]
        return cls(ip=ip, user_agent=headers.get("user-agent"))


def _valid_ip(value: str) -> str | None:
    value = value.strip()
    if not value or len(value) > MAX_IP_LENGTH:
        return None
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        return None


_DENY_MESSAGES: dict[DenyReason, str] = {
    DenyReason.UNAUTHENTICATED: "Login required",
    DenyReason.FORBIDDEN_SELF_TARGET: "You cannot change or delete your own account",
    DenyReason.INSUFFICIENT_PERMISSIONS: "Insufficient permissions",
    DenyReason.FORBIDDEN: "You are not allowed to modify this resource",
}


def denial_error(decision: Decision) -> Exception:
    reason = decision.reason or DenyReason.FORBIDDEN
    if reason is DenyReason.UNAUTHENTICATED:
        return AuthError(_DENY_MESSAGES[reason], details={"reason": reason.value})
    return AccessDeniedError(reason.value, _DENY_MESSAGES[reason])


class AuditedGate:
    def __init__(self, audit: AuditService) -> None:
        self.audit = audit

    async def run(
        self,
        action: Action,
        actor: ActorContext,
        target: Target,
        operation: Callable[[], Awaitable[T]],
        *,
        request: RequestMeta | None = None,
        meta: dict[str, Any] | None = None,
        success_meta: Callable[[T], dict[str, Any]] | None = None,
    ) -> T:
        """Authorize, then run ``operation`` and audit the outcome.

        Raises:
            AuthError: no session
            AccessDeniedError: any other denial
            Exception: whatever ``operation`` raised, after the error entry is recorded
        """
        decision = authorize(action, actor, target)
        if not decision:
            await self._record_denied(action, actor, target, decision, request, meta)
            raise denial_error(decision)

        try:
            result = await operation()
        except Exception as exc:
            await self._record(
                action,
                Outcome.ERROR,
                actor,
                target,
                request,
                meta,
                error=str(exc) or type(exc).__name__,
            )
            raise

        entry_meta = dict(meta or {})
        if success_meta is not None:
            try:
                entry_meta.update(success_meta(result))
            except Exception:
                logger.warning("success_meta failed for action %s", action.value, exc_info=True)
        await self._record(action, Outcome.SUCCESS, actor, target, request, entry_meta)
        return result

    async def ensure_authenticated(
        self,
        action: Action,
        actor: ActorContext,
        target: Target,
        *,
        request: RequestMeta | None = None,
        meta: dict[str, Any] | None = None,
    ) -> None:
        """Reject anonymous callers before the caller looks the resource up.

        Records an entry only when it denies.
        """
        if actor.is_authenticated:
            return
        decision = Decision.deny(DenyReason.UNAUTHENTICATED)
        await self._record_denied(action, actor, target, decision, request, meta)
        raise denial_error(decision)

    async def _record_denied(
        self,
        action: Action,
        actor: ActorContext,
        target: Target,
        decision: Decision,
        request: RequestMeta | None,
        meta: dict[str, Any] | None,
    ) -> None:
        reason = decision.reason.value if decision.reason else DenyReason.FORBIDDEN.value
        await self._record(action, Outcome.DENIED, actor, target, request, meta, error=reason)

    async def _record(
        self,
        action: Action,
        outcome: Outcome,
        actor: ActorContext,
        target: Target,
        request: RequestMeta | None,
        meta: dict[str, Any] | None,
        *,
        error: str | None = None,
    ) -> None:
        # Never lets a bad entry fail the guarded action.
        try:
            entry = self._entry(action, outcome, actor, target, request, meta, error=error)
        except Exception:
            logger.error(
                "Could not build audit entry for action %s (%s)",
                action.value,
                outcome.value,
                exc_info=True,
            )
            return
        await self.audit.record(entry)

    @staticmethod
    def _entry(
        action: Action,
        outcome: Outcome,
        actor: ActorContext,
        target: Target,
        request: RequestMeta | None,
        meta: dict[str, Any] | None,
        *,
        error: str | None = None,
    ) -> ActionLog:
        request = request or RequestMeta()
        actor_data = actor.to_audit()
        return ActionLog(
            action=action.value,
            outcome=outcome,
            actor=AuditActor(**actor_data) if actor_data else None,
            target=AuditTarget(**target.to_audit()),
            ip=request.ip,
            user_agent=request.user_agent,
            meta=dict(meta or {}),
            error=error,
        )
