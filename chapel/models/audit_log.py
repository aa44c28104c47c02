import uuid
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Base

ALLOWED_OUTCOMES = ("success", "denied", "error")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    action: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True
    )  # e.g., 'post.delete', 'user.role.update'
    outcome: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    actor_email: Mapped[str | None] = mapped_column(String(320), index=True)
    actor_name: Mapped[str | None] = mapped_column(String(255))
    actor_role: Mapped[str | None] = mapped_column(String(20))
    target_type: Mapped[str | None] = mapped_column(String(100), index=True)
    target_id: Mapped[str | None] = mapped_column(String(320), index=True)
    ip_address: Mapped[str | None] = mapped_column(String(45))  # IPv4/IPv6
    user_agent: Mapped[str | None] = mapped_column(Text)
    meta: Mapped[dict | None] = mapped_column(JSON)
    error: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    __table_args__ = (
        CheckConstraint(
            "outcome IN ('success', 'denied', 'error')",
            name="valid_audit_outcome",
        ),
    )

    @validates("outcome")
    def validate_outcome(self, key: str, value: str) -> str:
        value = getattr(value, "value", value)
        if value not in ALLOWED_OUTCOMES:
            raise ValueError(
                f"Invalid outcome '{value}'. Must be one of: {', '.join(ALLOWED_OUTCOMES)}"
            )
        return value
