import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Column widths of the audit_logs table.
MAX_ACTION_LENGTH = 100
MAX_NAME_LENGTH = 255
MAX_TARGET_TYPE_LENGTH = 100
MAX_TARGET_ID_LENGTH = 320
MAX_IP_LENGTH = 45


def _clip(value: Any, limit: int) -> Any:
    if isinstance(value, str) and len(value) > limit:
        return value[:limit]
    return value


class Outcome(str, Enum):
    SUCCESS = "success"
    DENIED = "denied"
    ERROR = "error"


class AuditActor(BaseModel):
    email: str
    name: str | None = None
    role: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _clip_name(cls, value: Any) -> Any:
        return _clip(value, MAX_NAME_LENGTH)


class AuditTarget(BaseModel):
    """Audit entries are written after the fact, so oversized values are
    clipped to the column width rather than rejected."""

    type: str = Field(..., min_length=1, max_length=MAX_TARGET_TYPE_LENGTH)
    id: str | None = Field(default=None, max_length=MAX_TARGET_ID_LENGTH)

    @field_validator("type", mode="before")
    @classmethod
    def _clip_type(cls, value: Any) -> Any:
        return _clip(value, MAX_TARGET_TYPE_LENGTH)

    @field_validator("id", mode="before")
    @classmethod
    def _clip_id(cls, value: Any) -> Any:
        return _clip(value, MAX_TARGET_ID_LENGTH)


class ActionLog(BaseModel):
    action: str = Field(..., min_length=1, max_length=MAX_ACTION_LENGTH)
    outcome: Outcome
    actor: AuditActor | None = None
    target: AuditTarget | None = None
    ip: str | None = Field(default=None, max_length=MAX_IP_LENGTH)
    user_agent: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("action", mode="before")
    @classmethod
    def _clip_action(cls, value: Any) -> Any:
        return _clip(value, MAX_ACTION_LENGTH)

    @field_validator("ip", mode="before")
    @classmethod
    def _clip_ip(cls, value: Any) -> Any:
        return _clip(value, MAX_IP_LENGTH)


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    action: str
    outcome: str
    actor_email: str | None = None
    actor_name: str | None = None
    actor_role: str | None = None
    target_type: str | None = None
    target_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    meta: dict[str, Any] | None = None
    error: str | None = None
    created_at: datetime


class AuditLogFilter(BaseModel):
    action: str | None = None
    outcome: Outcome | None = None
    actor_email: str | None = None
    target_type: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    limit: int = Field(default=100, ge=1, le=500)
    offset: int = Field(default=0, ge=0)
