from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass

from ...auth.roles import Role
from ...domain.ports.user import UserStore
from ...domain.users import UserRecord
from ...errors import NotFoundError

USER_NOT_FOUND = "User not found"


@dataclass(frozen=True)
class UserStats:
    total: int
    admins: int
    writers: int
    readers: int
    banned: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


async def update_role(user_store: UserStore, email: str, new_role: Role) -> UserRecord:
    """Set the stored role of ``email``. Admin-only; the caller enforces that."""
    try:
        existing = await user_store.find_by_email(email)
        if existing is None:
            raise NotFoundError(USER_NOT_FOUND, details={"email": email})
        saved = await user_store.upsert(existing.with_role(new_role))
        await user_store.commit()
        return saved
    except Exception:
        await user_store.rollback()
        raise


async def delete_user(user_store: UserStore, email: str) -> None:
    try:
        deleted = await user_store.delete(email)
        if not deleted:
            raise NotFoundError(USER_NOT_FOUND, details={"email": email})
        await user_store.commit()
    except Exception:
        await user_store.rollback()
        raise


async def list_users(user_store: UserStore) -> list[UserRecord]:
    return await user_store.list_all()


def user_stats(records: Iterable[UserRecord]) -> UserStats:
    counts = {role: 0 for role in Role}
    total = 0
    for record in records:
        total += 1
        counts[Role(record.role)] += 1
    return UserStats(
        total=total,
        admins=counts[Role.ADMIN],
        writers=counts[Role.WRITER],
        readers=counts[Role.READER],
        banned=counts[Role.BANNED],
    )


def writer_emails(records: Iterable[UserRecord]) -> list[str]:
    return [record.email for record in records if Role(record.role) is Role.WRITER]
