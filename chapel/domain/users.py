from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from ..auth.roles import Role


@dataclass(frozen=True)
class UserRecord:
    email: str
    role: Role
    last_login: datetime
    created_at: datetime
    name: str | None = None
    image: str | None = None

    def with_role(self, role: Role) -> UserRecord:
        return replace(self, role=role)

    def refreshed(self, *, name: str | None, image: str | None, last_login: datetime) -> UserRecord:
        """Copy with profile fields and login time updated; role and creation time kept."""
        return replace(self, name=name, image=image, last_login=last_login)


@dataclass(frozen=True)
class Identity:
    """A verified identity handed over by the external sign-in provider."""

    email: str
    name: str | None = None
    avatar_url: str | None = None
