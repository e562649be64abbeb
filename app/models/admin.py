"""Admin account model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, utcnow


class Admin(Base):
    """Dashboard administrator. OTP fields are only set while a login is pending."""

    __tablename__ = "admins"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    otp_code: Mapped[Optional[str]] = mapped_column(String(12), nullable=True)
    otp_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    otp_attempts: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    def clear_otp(self) -> None:
        self.otp_code = None
        self.otp_expires_at = None
        self.otp_attempts = 0

    def __repr__(self) -> str:
        return f"<Admin {self.email}>"
