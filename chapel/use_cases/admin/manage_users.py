from ...auth.context import ActorContext
from ...auth.gate import Action, Target
from ...auth.guard import AuditedGate, RequestMeta
from ...auth.roles import Role
from ...domain.ports.user import UserStore
from ...domain.users import UserRecord
from ...errors import ValidationError
from ..users.manage_users import UserStats, delete_user, list_users, update_role, user_stats


def parse_role(value: str | Role) -> Role:
    try:
        return Role.parse(value)
    except ValueError as exc:
        raise ValidationError(
            str(exc), details={"allowed": [role.value for role in Role]}
        ) from exc


def _user_target(email: str) -> Target:
    return Target(type="user", id=email, user_email=email)


async def change_user_role(
    gate: AuditedGate,
    user_store: UserStore,
    actor: ActorContext,
    email: str,
    new_role: str | Role,
    *,
    request: RequestMeta | None = None,
) -> UserRecord:
    """Change a user's role.

    The role value is parsed only once the gate has allowed the action, so a
    non-admin is denied whatever value they send. An admin sending an unknown
    role gets a ValidationError, audited as an error.
    """

    async def _apply() -> UserRecord:
        return await update_role(user_store, email, parse_role(new_role))

    return await gate.run(
        Action.USER_ROLE_UPDATE,
        actor,
        _user_target(email),
        _apply,
        request=request,
        meta={"new_role": getattr(new_role, "value", new_role)},
    )


async def remove_user(
    gate: AuditedGate,
    user_store: UserStore,
    actor: ActorContext,
    email: str,
    *,
    request: RequestMeta | None = None,
) -> None:
    await gate.run(
        Action.USER_DELETE,
        actor,
        _user_target(email),
        lambda: delete_user(user_store, email),
        request=request,
    )


async def list_users_for_admin(
    gate: AuditedGate,
    user_store: UserStore,
    actor: ActorContext,
    *,
    request: RequestMeta | None = None,
) -> tuple[list[UserRecord], UserStats]:
    users = await gate.run(
        Action.USER_LIST,
        actor,
        Target(type="user"),
        lambda: list_users(user_store),
        request=request,
        success_meta=lambda records: {"count": len(records)},
    )
    return users, user_stats(users)
