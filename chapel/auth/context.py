from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .roles import DEFAULT_ROLE, PermissionSet, Role, permissions_for


@dataclass(frozen=True)
class ActorContext:
    """Typed claims of the caller for one request.

    ``email`` is None when there is no session. An anonymous actor still carries
    the reader role, so session presence must be checked with
    ``is_authenticated`` rather than inferred from the role.
    """

    email: str | None
    role: Role = DEFAULT_ROLE
    name: str | None = None
    permissions: PermissionSet = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "permissions", permissions_for(self.role))

    @classmethod
    def anonymous(cls) -> ActorContext:
        return cls(email=None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.email)

    @property
    def is_admin(self) -> bool:
        return self.role.at_least(Role.ADMIN)

    def is_email(self, email: str | None) -> bool:
        return self.is_authenticated and email is not None and email == self.email

    def to_audit(self) -> dict[str, Any] | None:
        if not self.is_authenticated:
            return None
        return {"email": self.email, "name": self.name, "role": self.role.value}
