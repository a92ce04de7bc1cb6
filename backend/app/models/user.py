# backend/app/models/user.py
"""
User model.

Accounts live with the external identity provider; this table mirrors the
profile fields the booking flow needs and is keyed by the provider's subject
identifier. Rows are created the first time a verified token is seen.

Classes:
    User: Profile mirror used for bookings, waivers and memberships
"""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import false, func

from ..database import Base


class User(Base):
    """
    Profile mirror of an identity provider account.

    Attributes:
        id: Identity provider subject (token ``sub`` claim)
        email: Unique email address
        full_name: Display name
        phone: Optional phone number
        is_admin: Grants access to the admin endpoints
    """

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, index=True)
    email = Column(String(320), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=True)
    phone = Column(String(40), nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False, server_default=false())

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="user")
    membership = relationship("Membership", back_populates="user", uselist=False)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
