from __future__ import annotations

from typing import Protocol

from ..users import UserRecord


class UserStore(Protocol):
    async def find_by_email(self, email: str) -> UserRecord | None:
        ...

    async def upsert(self, record: UserRecord) -> UserRecord:
        ...

    async def record_login(self, record: UserRecord) -> UserRecord:
        """Upsert on sign-in; an existing row keeps its stored role."""
        ...

    async def delete(self, email: str) -> bool:
        ...

    async def list_all(self) -> list[UserRecord]:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
