from datetime import datetime, timezone

from ...auth.resolver import RoleResolver
from ...domain.ports.user import UserStore
from ...domain.users import Identity, UserRecord


async def upsert_on_authentication(
    user_store: UserStore,
    resolver: RoleResolver,
    identity: Identity,
    *,
    now: datetime | None = None,
) -> UserRecord:
    """Create or refresh the user record after a successful sign-in.

    A new record takes its role from the admin allowlist. An existing record
    keeps its stored role: later allowlist changes or an admin's demotion are
    never overwritten by a login.
    """
    now = now or datetime.now(timezone.utc)
    try:
        existing = await user_store.find_by_email(identity.email)
        if existing is None:
            record = UserRecord(
                email=identity.email,
                name=identity.name,
                image=identity.avatar_url,
                role=resolver.initial_role(identity.email),
                last_login=now,
                created_at=now,
            )
        else:
            record = existing.refreshed(
                name=identity.name, image=identity.avatar_url, last_login=now
            )

        saved = await user_store.record_login(record)
        await user_store.commit()
        return saved
    except Exception:
        await user_store.rollback()
        raise
