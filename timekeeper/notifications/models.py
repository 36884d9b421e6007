"""Notification ORM model: pending email verification codes (one per address)."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from timekeeper.database import Base


class EmailVerification(Base):
    __tablename__ = "email_verifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    code: Mapped[str] = mapped_column(sa.String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(sa.DateTime, nullable=False)
    verified: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    verified_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime, default=datetime.now
    )

    def __repr__(self) -> str:
        return f"<EmailVerification {self.email!r} verified={self.verified}>"
