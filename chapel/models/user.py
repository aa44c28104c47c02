import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, validates

from ..auth.roles import ROLE_ORDER
from .base import Base

ALLOWED_ROLES = tuple(role.value for role in ROLE_ORDER)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )  # sole identity key, exact match
    name: Mapped[str | None] = mapped_column(String(255))
    image: Mapped[str | None] = mapped_column(Text)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default="reader", index=True
    )
    last_login: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('banned', 'reader', 'writer', 'admin')",
            name="valid_user_role",
        ),
    )

    @validates("role")
    def validate_role(self, key: str, value: str) -> str:
        value = getattr(value, "value", value)
        if value not in ALLOWED_ROLES:
            raise ValueError(
                f"Invalid role '{value}'. Must be one of: {', '.join(ALLOWED_ROLES)}"
            )
        return value
