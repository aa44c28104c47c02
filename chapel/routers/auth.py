from fastapi import APIRouter, Depends

from ..auth.context import ActorContext
from ..auth.identity import IdentityProvider
from ..auth.resolver import RoleResolver
from ..auth.roles import permissions_for
from ..dependencies import (
    get_actor_context,
    get_identity_provider,
    get_role_resolver,
    get_user_store,
)
from ..domain.ports.user import UserStore
from ..domain.users import Identity
from ..schemas.auth import MeResponse, SessionRequest, SessionResponse
from ..schemas.user import PermissionsResponse, UserResponse
from ..security.session_tokens import issue_session_token
from ..use_cases.users.upsert_on_authentication import upsert_on_authentication

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/session", response_model=SessionResponse)
async def create_session(
    payload: SessionRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
    user_store: UserStore = Depends(get_user_store),
    resolver: RoleResolver = Depends(get_role_resolver),
) -> SessionResponse:
    identity = await provider.verify(payload.id_token)
    record = await upsert_on_authentication(user_store, resolver, identity)
    token = issue_session_token(
        Identity(email=record.email, name=record.name, avatar_url=record.image)
    )
    return SessionResponse(
        access_token=token,
        user=UserResponse.from_record(record),
        permissions=PermissionsResponse.from_permissions(permissions_for(record.role)),
    )


@router.get("/me", response_model=MeResponse)
async def read_me(actor: ActorContext = Depends(get_actor_context)) -> MeResponse:
    return MeResponse(
        authenticated=actor.is_authenticated,
        email=actor.email,
        name=actor.name,
        role=actor.role,
        permissions=PermissionsResponse.from_permissions(actor.permissions),
    )
