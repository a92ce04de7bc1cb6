"""Centralized pricing calculations for sauna sessions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from app.constants.pricing_defaults import PRICING_DEFAULTS
from app.core.constants import MAX_PARTY_SIZE, MIN_PARTY_SIZE
from app.core.exceptions import ValidationException
from app.core.timezone_utils import get_business_today
from app.models.membership import Membership, MembershipKind
from app.models.time_slot import SessionKind
from app.repositories.factory import RepositoryFactory
from app.repositories.membership_repository import MembershipRepository
from app.services.base import BaseService


@dataclass(frozen=True)
class PriceQuote:
    """Result of pricing one booking request."""

    session_kind: SessionKind
    party_size: int
    base_price_cents: int
    final_price_cents: int
    is_member: bool

    @property
    def member_discount_cents(self) -> int:
        return self.base_price_cents - self.final_price_cents


def _validate_party_size(party_size: int) -> None:
    if not isinstance(party_size, int) or isinstance(party_size, bool):
        raise ValidationException("party_size must be an integer", code="INVALID_PARTY_SIZE")
    if party_size < MIN_PARTY_SIZE or party_size > MAX_PARTY_SIZE:
        raise ValidationException(
            f"party_size must be between {MIN_PARTY_SIZE} and {MAX_PARTY_SIZE}",
            code="INVALID_PARTY_SIZE",
            details={"party_size": party_size},
        )


def is_active_member(membership: Optional[Membership], on: Optional[date] = None) -> bool:
    """
    Whether ``membership`` grants member pricing on ``on`` (default: today in
    the business timezone).

    The validity window is authoritative: access runs from ``start_date`` while
    ``on < end_date``. Only lifetime memberships may leave ``end_date`` open.
    A membership that was never paid for has no ``start_date`` and grants
    nothing. The billing ``status`` column does not participate.
    """
    if membership is None:
        return False
    kind = MembershipKind(membership.membership_kind)
    if kind == MembershipKind.NONE or membership.start_date is None:
        return False

    today = on or get_business_today()
    if today < membership.start_date:
        return False
    if membership.end_date is None:
        return kind == MembershipKind.LIFETIME
    return today < membership.end_date


class PricingService(BaseService):
    """Compute session prices in cents for members and non-members."""

    def __init__(
        self,
        db: Session,
        community_rate_cents: int = PRICING_DEFAULTS["community_rate_cents"],
        private_rate_cents: int = PRICING_DEFAULTS["private_rate_cents"],
        member_community_rate_cents: int = PRICING_DEFAULTS["member_community_rate_cents"],
    ) -> None:
        super().__init__(db)
        self.community_rate_cents = community_rate_cents
        self.private_rate_cents = private_rate_cents
        self.member_community_rate_cents = member_community_rate_cents
        self.membership_repository: MembershipRepository = (
            RepositoryFactory.create_membership_repository(db)
        )

    def price(self, session_kind: SessionKind, party_size: int) -> int:
        """Non-member price: per person for community, flat for private."""
        _validate_party_size(party_size)
        if SessionKind(session_kind) == SessionKind.COMMUNITY:
            return self.community_rate_cents * party_size
        return self.private_rate_cents

    def member_price(self, session_kind: SessionKind, party_size: int) -> int:
        """
        Member price.

        Community sessions are free for active members. Private sessions are
        charged the regular flat rate.
        """
        _validate_party_size(party_size)
        if SessionKind(session_kind) == SessionKind.COMMUNITY:
            return self.member_community_rate_cents * party_size
        return self.price(session_kind, party_size)

    def is_active_member(self, membership: Optional[Membership], on: Optional[date] = None) -> bool:
        return is_active_member(membership, on)

    @BaseService.measure_operation("pricing.quote")
    def quote(
        self,
        session_kind: SessionKind,
        party_size: int,
        user_id: Optional[str] = None,
        on: Optional[date] = None,
    ) -> PriceQuote:
        """Price a request, applying member pricing when ``user_id`` has an active membership."""
        base = self.price(session_kind, party_size)
        membership = self.membership_repository.get_by_user(user_id) if user_id else None
        member = is_active_member(membership, on)
        final = self.member_price(session_kind, party_size) if member else base
        return PriceQuote(
            session_kind=SessionKind(session_kind),
            party_size=party_size,
            base_price_cents=base,
            final_price_cents=final,
            is_member=member,
        )
