from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .auth.allowlist import AdminAllowlist, StaticAdminAllowlist
from .auth.context import ActorContext
from .auth.guard import AuditedGate, RequestMeta
from .auth.identity import GoogleIdentityProvider, IdentityProvider
from .auth.resolver import RoleResolver
from .config import settings
from .crud.audit_log import AuditLogRepository, DatabaseAuditSink
from .crud.comment import CommentRepository
from .crud.post import PostRepository
from .crud.user import UserRepository
from .database import AsyncSessionLocal, get_session
from .domain.ports.content import CommentStore, PostStore
from .domain.ports.user import UserStore
from .domain.users import Identity
from .errors import AuthError
from .security.session_tokens import (
    ExpiredTokenError,
    InvalidTokenError,
    identity_from_claims,
    validate_session_token,
)
from .services.audit.audit_service import AuditService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    return UserRepository(db)


def get_post_store(db: AsyncSession = Depends(get_db)) -> PostStore:
    return PostRepository(db)


def get_comment_store(db: AsyncSession = Depends(get_db)) -> CommentStore:
    return CommentRepository(db)


def get_audit_log_repository(db: AsyncSession = Depends(get_db)) -> AuditLogRepository:
    return AuditLogRepository(db)


def get_allowlist() -> AdminAllowlist:
    return StaticAdminAllowlist.from_settings(settings)


def get_role_resolver(
    user_store: UserStore = Depends(get_user_store),
    allowlist: AdminAllowlist = Depends(get_allowlist),
) -> RoleResolver:
    return RoleResolver(user_store, allowlist)


def get_identity_provider() -> IdentityProvider:
    return GoogleIdentityProvider(settings.google_client_id)


def get_audit_service() -> AuditService:
    return AuditService(sinks=[DatabaseAuditSink(AsyncSessionLocal)])


def get_audited_gate(audit: AuditService = Depends(get_audit_service)) -> AuditedGate:
    return AuditedGate(audit)


def get_request_meta(request: Request) -> RequestMeta:
    client_host = request.client.host if request.client else None
    return RequestMeta.from_headers(request.headers, client_host)


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity | None:
    """Identity from the bearer session token; None when no token was sent."""
    if credentials is None:
        return None
    if credentials.scheme.lower() != "bearer":
        raise AuthError("Not authenticated")

    try:
        claims = validate_session_token(credentials.credentials)
    except ExpiredTokenError:
        raise AuthError("Session has expired") from None
    except InvalidTokenError:
        raise AuthError("Invalid session token") from None

    return identity_from_claims(claims)


async def get_actor_context(
    identity: Identity | None = Depends(get_current_identity),
    resolver: RoleResolver = Depends(get_role_resolver),
) -> ActorContext:
    return await resolver.resolve_context(identity)
