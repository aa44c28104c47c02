from __future__ import annotations

import logging

from ..domain.ports.user import UserStore
from ..domain.users import Identity
from ..errors import StoreUnavailableError
from .allowlist import AdminAllowlist
from .context import ActorContext
from .roles import DEFAULT_ROLE, Role

logger = logging.getLogger(__name__)


class RoleResolver:
    """Resolve the effective role of an email.

    The user store is authoritative once a record exists. The admin allowlist
    only matters for emails the store has never seen.
    """

    def __init__(self, user_store: UserStore, allowlist: AdminAllowlist) -> None:
        self.user_store = user_store
        self.allowlist = allowlist

    async def resolve_role(self, email: str | None) -> Role:
        if not email:
            return DEFAULT_ROLE

        try:
            record = await self.user_store.find_by_email(email)
        except StoreUnavailableError as exc:
            logger.warning("role_resolution_store_unavailable email=%s error=%s", email, exc)
            record = None

        if record is not None and record.role:
            return Role(record.role)

        return self.initial_role(email)

    def initial_role(self, email: str) -> Role:
        """Role for an email with no stored record, based on the allowlist alone."""
        if self.allowlist.is_member(email):
            return Role.ADMIN
        return DEFAULT_ROLE

    async def resolve_context(self, identity: Identity | None) -> ActorContext:
        if identity is None or not identity.email:
            return ActorContext.anonymous()
        role = await self.resolve_role(identity.email)
        return ActorContext(email=identity.email, role=role, name=identity.name)
