"""
Role and permission contract for the blog.

Roles form a strict privilege order ``banned < reader < writer < admin``. The
permission set of a user is derived from their role through ROLE_PERMISSIONS
and nothing else: it is never stored and never overridden per user.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Final


class Role(str, Enum):
    BANNED = "banned"
    READER = "reader"
    WRITER = "writer"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return ROLE_ORDER.index(self)

    def at_least(self, required: Role) -> bool:
        return self.rank >= required.rank

    @classmethod
    def parse(cls, value: str) -> Role:
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Invalid role '{value}'. Must be one of: "
                f"{', '.join(role.value for role in ROLE_ORDER)}"
            ) from None


# Lowest privilege first
ROLE_ORDER: Final[tuple[Role, ...]] = (Role.BANNED, Role.READER, Role.WRITER, Role.ADMIN)

DEFAULT_ROLE: Final[Role] = Role.READER


@dataclass(frozen=True)
class PermissionSet:
    can_read: bool
    can_write: bool
    can_delete: bool
    can_comment: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "canRead": self.can_read,
            "canWrite": self.can_write,
            "canDelete": self.can_delete,
            "canComment": self.can_comment,
        }


ROLE_PERMISSIONS: Final[dict[Role, PermissionSet]] = {
    Role.ADMIN: PermissionSet(can_read=True, can_write=True, can_delete=True, can_comment=True),
    Role.WRITER: PermissionSet(can_read=True, can_write=True, can_delete=False, can_comment=True),
    Role.READER: PermissionSet(can_read=True, can_write=False, can_delete=False, can_comment=True),
    Role.BANNED: PermissionSet(can_read=True, can_write=False, can_delete=False, can_comment=False),
}


def permissions_for(role: Role | str | None) -> PermissionSet:
    """Map a role to its permission set.

    Unknown values fall back to the reader row, so the mapping is total.
    """
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except (KeyError, ValueError):
        return ROLE_PERMISSIONS[DEFAULT_ROLE]


def has_write_permission(role: Role | str) -> bool:
    return permissions_for(role).can_write


def has_delete_permission(role: Role | str) -> bool:
    return permissions_for(role).can_delete


def _validate_contract() -> None:
    """Fail at import time if a role has no permission row."""
    missing = [role.value for role in Role if role not in ROLE_PERMISSIONS]
    if missing:
        raise RuntimeError(f"Role contract is missing permission rows for: {missing}")
    if set(ROLE_ORDER) != set(Role):
        raise RuntimeError("ROLE_ORDER must list every role exactly once")


_validate_contract()
