from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..auth.roles import PermissionSet, Role
from ..domain.users import UserRecord


class PermissionsResponse(BaseModel):
    can_read: bool
    can_write: bool
    can_delete: bool
    can_comment: bool

    @classmethod
    def from_permissions(cls, permissions: PermissionSet) -> "PermissionsResponse":
        return cls(
            can_read=permissions.can_read,
            can_write=permissions.can_write,
            can_delete=permissions.can_delete,
            can_comment=permissions.can_comment,
        )


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email: str
    name: str | None = None
    image: str | None = None
    role: Role
    last_login: datetime
    created_at: datetime

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls.model_validate(record)


class UserStatsResponse(BaseModel):
    total: int
    admins: int
    writers: int
    readers: int
    banned: int
    writer_emails: list[str] = Field(default_factory=list)


class UserListResponse(BaseModel):
    users: list[UserResponse]
    stats: UserStatsResponse | None = None


class RoleUpdateRequest(BaseModel):
    role: str = Field(..., min_length=1, max_length=20)
