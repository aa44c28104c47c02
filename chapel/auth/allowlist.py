from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


class AdminAllowlist(Protocol):
    def is_member(self, email: str | None) -> bool:
        ...


class StaticAdminAllowlist:
    """Bootstrap admin emails taken from configuration at startup.

    Membership is case-insensitive and the list never changes for the life of
    the process. Membership only ever grants admin; it cannot restrict anyone.
    """

    def __init__(self, emails: Iterable[str] = ()) -> None:
        self._emails = tuple(email.strip() for email in emails if email and email.strip())
        self._normalized = frozenset(email.lower() for email in self._emails)

    @classmethod
    def from_settings(cls, settings) -> StaticAdminAllowlist:  # type: ignore[no-untyped-def]
        return cls(settings.admin_emails)

    def is_member(self, email: str | None) -> bool:
        if not email:
            return False
        return email.strip().lower() in self._normalized

    def members(self) -> list[str]:
        return list(self._emails)

    def __len__(self) -> int:
        return len(self._emails)
