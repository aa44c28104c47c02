from pydantic import BaseModel, Field

from ..auth.roles import Role
from .user import PermissionsResponse, UserResponse


class SessionRequest(BaseModel):
    id_token: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    permissions: PermissionsResponse


class MeResponse(BaseModel):
    authenticated: bool
    email: str | None = None
    name: str | None = None
    role: Role
    permissions: PermissionsResponse
