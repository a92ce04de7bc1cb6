# backend/app/models/membership.py
"""
Membership models.

A membership grants free community sessions while its validity window is
open. ``start_date``/``end_date`` come from the Stripe subscription period;
lifetime memberships have no end date. ``status`` mirrors billing state for
display and does not by itself grant or revoke access.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .base_enum import create_safe_enum


class MembershipKind(str, Enum):
    NONE = "none"
    MONTHLY = "monthly"
    ANNUAL = "annual"
    LIFETIME = "lifetime"


class MembershipStatus(str, Enum):
    NONE = "none"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class PurchaseStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class Membership(Base):
    __tablename__ = "memberships"

    id: Mapped[str] = Column(
        String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID())
    )
    user_id: Mapped[str] = Column(String(64), ForeignKey("users.id"), nullable=False, unique=True)
    membership_kind: Mapped[MembershipKind] = Column(
        create_safe_enum(MembershipKind, "membership_kind"),
        nullable=False,
        default=MembershipKind.NONE,
    )
    status: Mapped[MembershipStatus] = Column(
        create_safe_enum(MembershipStatus, "membership_status"),
        nullable=False,
        default=MembershipStatus.NONE,
    )
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    stripe_customer_id: Mapped[Optional[str]] = Column(String(255), nullable=True, index=True)
    stripe_subscription_id: Mapped[Optional[str]] = Column(String(255), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="membership")

    def __repr__(self) -> str:
        return f"<Membership {self.user_id} {self.membership_kind} {self.start_date}..{self.end_date}>"


class MembershipPurchase(Base):
    """Audit row per subscription billing period."""

    __tablename__ = "membership_purchases"

    id: Mapped[str] = Column(
        String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID())
    )
    user_id: Mapped[str] = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    membership_kind: Mapped[MembershipKind] = Column(
        create_safe_enum(MembershipKind, "membership_kind"), nullable=False
    )
    amount_paid_cents: Mapped[int] = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    stripe_subscription_id: Mapped[Optional[str]] = Column(String(255), nullable=True)
    status: Mapped[PurchaseStatus] = Column(
        create_safe_enum(PurchaseStatus, "membership_purchase_status"),
        nullable=False,
        default=PurchaseStatus.PENDING,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint(
            "stripe_subscription_id", "start_date", name="uq_membership_purchases_period"
        ),
    )
