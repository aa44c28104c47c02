"""
Ownership-aware authorization gate.

``authorize`` combines the actor's role and permission set with ownership
facts about the target and returns a Decision. It holds no state and performs
no I/O: callers fetch the resource from its own store first and pass the
author emails in through ``Target``.

Evaluation order for every action:
1. no session -> ``unauthenticated``
2. self-targeting on user management -> ``forbidden-self-target``
3. missing capability -> ``insufficient-permissions``
4. ownership mismatch -> ``forbidden``
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Final

from .context import ActorContext
from .roles import has_delete_permission, has_write_permission


class Action(str, Enum):
    POST_CREATE = "post.create"
    POST_EDIT = "post.edit"
    POST_DELETE = "post.delete"
    COMMENT_CREATE = "comment.create"
    COMMENT_DELETE = "comment.delete"
    USER_ROLE_UPDATE = "user.role.update"
    USER_DELETE = "user.delete"
    USER_LIST = "user.list"
    AUDIT_VIEW = "audit.view"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN_SELF_TARGET = "forbidden-self-target"
    INSUFFICIENT_PERMISSIONS = "insufficient-permissions"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Target:
    """The resource an action is aimed at plus its ownership facts."""

    type: str
    id: str | None = None
    post_author_email: str | None = None
    comment_author_email: str | None = None
    user_email: str | None = None

    def to_audit(self) -> dict[str, str | None]:
        return {"type": self.type, "id": self.id}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason) -> Decision:
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


Rule = Callable[[ActorContext, Target], Decision]

ALLOW: Final[Decision] = Decision.allow()


def _delete_post(actor: ActorContext, target: Target) -> Decision:
    if has_delete_permission(actor.role) or actor.is_email(target.post_author_email):
        return ALLOW
    return Decision.deny(DenyReason.FORBIDDEN)


def _edit_post(actor: ActorContext, target: Target) -> Decision:
    if actor.is_admin or actor.is_email(target.post_author_email):
        return ALLOW
    return Decision.deny(DenyReason.FORBIDDEN)


def _delete_comment(actor: ActorContext, target: Target) -> Decision:
    # Post authors moderate every comment on their own post
    if (
        actor.is_admin
        or actor.is_email(target.post_author_email)
        or actor.is_email(target.comment_author_email)
    ):
        return ALLOW
    return Decision.deny(DenyReason.FORBIDDEN)


def _create_comment(actor: ActorContext, target: Target) -> Decision:
    if actor.permissions.can_comment:
        return ALLOW
    return Decision.deny(DenyReason.INSUFFICIENT_PERMISSIONS)


def _create_post(actor: ActorContext, target: Target) -> Decision:
    if has_write_permission(actor.role):
        return ALLOW
    return Decision.deny(DenyReason.INSUFFICIENT_PERMISSIONS)


def _manage_other_user(actor: ActorContext, target: Target) -> Decision:
    if target.user_email is not None and actor.is_email(target.user_email):
        return Decision.deny(DenyReason.FORBIDDEN_SELF_TARGET)
    if has_delete_permission(actor.role):
        return ALLOW
    return Decision.deny(DenyReason.INSUFFICIENT_PERMISSIONS)


def _admin_only(actor: ActorContext, target: Target) -> Decision:
    if has_delete_permission(actor.role):
        return ALLOW
    return Decision.deny(DenyReason.INSUFFICIENT_PERMISSIONS)


RULES: Final[dict[Action, Rule]] = {
    Action.POST_DELETE: _delete_post,
    Action.POST_EDIT: _edit_post,
    Action.COMMENT_DELETE: _delete_comment,
    Action.COMMENT_CREATE: _create_comment,
    Action.POST_CREATE: _create_post,
    Action.USER_ROLE_UPDATE: _manage_other_user,
    Action.USER_DELETE: _manage_other_user,
    Action.USER_LIST: _admin_only,
    Action.AUDIT_VIEW: _admin_only,
}


def authorize(action: Action | str, actor: ActorContext, target: Target) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on ``target``."""
    rule = RULES[Action(action)]
    if not actor.is_authenticated:
        return Decision.deny(DenyReason.UNAUTHENTICATED)
    return rule(actor, target)


def _validate_rules() -> None:
    missing = [action.value for action in Action if action not in RULES]
    if missing:
        raise RuntimeError(f"Authorization rules missing for actions: {missing}")


_validate_rules()
