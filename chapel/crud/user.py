from functools import wraps

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth.roles import Role
from ..domain.ports.user import UserStore
from ..domain.users import UserRecord
from ..errors import StoreUnavailableError
from ..models.user import User


def _insert_for(session: AsyncSession):
    bind = session.get_bind()
    dialect = bind.dialect.name if bind is not None else "postgresql"
    if dialect == "sqlite":
        return sqlite_insert
    return pg_insert


def to_record(user: User) -> UserRecord:
    return UserRecord(
        email=user.email,
        name=user.name,
        image=user.image,
        role=Role(user.role),
        last_login=user.last_login,
        created_at=user.created_at,
    )


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def upsert_user(
    session: AsyncSession, record: UserRecord, *, keep_role: bool = False
) -> User:
    """Insert or update ``record`` by email in one statement.

    With ``keep_role`` an existing row keeps its stored role; the record's role
    is only used when the row is created.
    """
    insert_fn = _insert_for(session)
    stmt = insert_fn(User).values(
        email=record.email,
        name=record.name,
        image=record.image,
        role=record.role.value,
        last_login=record.last_login,
        created_at=record.created_at,
    )
    updates = {
        "name": stmt.excluded.name,
        "image": stmt.excluded.image,
        "last_login": stmt.excluded.last_login,
    }
    if not keep_role:
        updates["role"] = stmt.excluded.role
    # Single statement so a concurrent login for the same email never sees a partial row
    stmt = stmt.on_conflict_do_update(index_elements=["email"], set_=updates)
    await session.execute(stmt)
    user = await get_user_by_email(session, record.email)
    if user is None:
        raise RuntimeError(f"User upsert did not return a row for email={record.email}")
    return user


async def delete_user_by_email(session: AsyncSession, email: str) -> bool:
    result = await session.execute(delete(User).where(User.email == email))
    return (result.rowcount or 0) > 0


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(select(User).order_by(User.created_at.asc()))
    return list(result.scalars().all())


def _store_errors(func):
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(details=str(exc)) from exc

    return wrapper


class UserRepository(UserStore):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @_store_errors
    async def find_by_email(self, email: str) -> UserRecord | None:
        user = await get_user_by_email(self._session, email)
        return to_record(user) if user is not None else None

    @_store_errors
    async def upsert(self, record: UserRecord) -> UserRecord:
        user = await upsert_user(self._session, record)
        await self._session.refresh(user)
        return to_record(user)

    @_store_errors
    async def record_login(self, record: UserRecord) -> UserRecord:
        user = await upsert_user(self._session, record, keep_role=True)
        await self._session.refresh(user)
        return to_record(user)

    @_store_errors
    async def delete(self, email: str) -> bool:
        return await delete_user_by_email(self._session, email)

    @_store_errors
    async def list_all(self) -> list[UserRecord]:
        return [to_record(user) for user in await list_users(self._session)]

    @_store_errors
    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
