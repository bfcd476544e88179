"""
SQLAlchemy models for the local database.

Only the user profile lives here; orders, payments and customers are owned
by Square and never stored locally.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    """
    Local user with cached profile fields and the link to its Square customer.
    """

    __tablename__ = "users"

    # Campos editables desde checkout o desde el perfil
    PROFILE_FIELDS = (
        "email",
        "given_name",
        "family_name",
        "phone_number",
        "address_line_1",
        "address_line_2",
        "city",
        "state",
        "postal_code",
        "country",
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_digest: Mapped[Optional[str]] = mapped_column(String(255))
    admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    square_customer_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)

    given_name: Mapped[Optional[str]] = mapped_column(String(100))
    family_name: Mapped[Optional[str]] = mapped_column(String(100))
    phone_number: Mapped[Optional[str]] = mapped_column(String(32))
    address_line_1: Mapped[Optional[str]] = mapped_column(String(255))
    address_line_2: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    state: Mapped[Optional[str]] = mapped_column(String(100))
    postal_code: Mapped[Optional[str]] = mapped_column(String(20))
    country: Mapped[Optional[str]] = mapped_column(String(2))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def address_to_square(self) -> Dict[str, Any]:
        """Stored address in Square's field naming."""
        address = {
            "address_line_1": self.address_line_1,
            "address_line_2": self.address_line_2,
            "locality": self.city,
            "administrative_district_level_1": self.state,
            "postal_code": self.postal_code,
            "country": self.country or "US",
        }
        return {key: value for key, value in address.items() if value}

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email!r}, square_customer_id={self.square_customer_id!r})"
