# backend/app/services/membership_service.py
"""
Membership Service

Keeps memberships in step with Stripe subscriptions:
- Starting a subscription checkout
- Syncing kind, status and validity window from subscription events
- Cancelling at the end of the current period

Access is governed by the validity window. Cancelling keeps the window, so a
member keeps free community sessions until the period they paid for ends.
"""

from datetime import date
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..constants.payment_status import (
    PAID_SUBSCRIPTION_STATUSES,
    UNPAID_SIGNUP_STATUSES,
    map_subscription_status,
)
from ..core.config import settings
from ..core.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ServiceException,
    ValidationException,
)
from ..core.timezone_utils import get_business_today, to_business_date
from ..models.membership import Membership, MembershipKind, MembershipStatus, PurchaseStatus
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .pricing_service import is_active_member
from .stripe_service import HostedCheckout, StripeService, stripe_field


def _first_item(subscription: Any) -> Any:
    items = stripe_field(subscription, "items")
    data = stripe_field(items, "data") or []
    return data[0] if data else None


class MembershipService(BaseService):
    """Membership lifecycle backed by Stripe subscriptions."""

    def __init__(self, db: Session, stripe_service: Optional[StripeService] = None):
        super().__init__(db)
        self.membership_repository = RepositoryFactory.create_membership_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.stripe_service = stripe_service or StripeService()

    def get_for_user(self, user_id: str) -> Optional[Membership]:
        return self.membership_repository.get_by_user(user_id)

    def is_active(self, user_id: str, on: Optional[date] = None) -> bool:
        return is_active_member(self.get_for_user(user_id), on)

    def list_memberships(
        self, status: Optional[MembershipStatus] = None, limit: int = 100, offset: int = 0
    ) -> List[Membership]:
        return self.membership_repository.list_memberships(status=status, limit=limit, offset=offset)

    def price_id_for(self, kind: MembershipKind) -> str:
        price_ids = {
            MembershipKind.MONTHLY: settings.stripe_price_monthly_membership,
            MembershipKind.ANNUAL: settings.stripe_price_annual_membership,
            MembershipKind.LIFETIME: settings.stripe_price_lifetime_membership,
        }
        price_id = price_ids.get(MembershipKind(kind))
        if not price_id:
            raise ValidationException(
                f"Membership kind {MembershipKind(kind).value} is not available",
                code="MEMBERSHIP_KIND_UNAVAILABLE",
            )
        return price_id

    def _kind_for(self, subscription: Any) -> MembershipKind:
        item = _first_item(subscription)
        price_id = stripe_field(stripe_field(item, "price"), "id")
        if price_id:
            if price_id == settings.stripe_price_lifetime_membership:
                return MembershipKind.LIFETIME
            if price_id == settings.stripe_price_annual_membership:
                return MembershipKind.ANNUAL
            if price_id == settings.stripe_price_monthly_membership:
                return MembershipKind.MONTHLY

        metadata_kind = stripe_field(stripe_field(subscription, "metadata") or {}, "membership_kind")
        if metadata_kind in {k.value for k in MembershipKind if k != MembershipKind.NONE}:
            return MembershipKind(metadata_kind)
        return MembershipKind.MONTHLY

    def _resolve_user(self, subscription: Any, customer_id: Optional[str]) -> Optional[User]:
        metadata = stripe_field(subscription, "metadata") or {}
        user_id = stripe_field(metadata, "user_id")
        if user_id:
            user = self.user_repository.get_by_id(user_id)
            if user is not None:
                return user

        if not customer_id:
            return None
        customer = self.stripe_service.retrieve_customer(customer_id)
        user = self.user_repository.get_by_email(stripe_field(customer, "email"))
        if user is None:
            return None

        existing = self.membership_repository.get_by_user(user.id)
        if existing is not None and existing.stripe_customer_id and existing.stripe_customer_id != customer_id:
            raise ConflictException(
                "Stripe customer does not match the member on file",
                code="CUSTOMER_MISMATCH",
                details={"user_id": user.id, "customer_id": customer_id},
            )
        return user

    @BaseService.measure_operation("sync_membership")
    def sync_from_subscription(self, subscription: Any) -> Optional[Membership]:
        """
        Apply a Stripe subscription object to the member's record.

        Returns:
            The updated membership, or None when no user matches the subscription
        """
        subscription_id = stripe_field(subscription, "id")
        customer = stripe_field(subscription, "customer")
        customer_id = customer if isinstance(customer, str) or customer is None else stripe_field(customer, "id")

        user = self._resolve_user(subscription, customer_id)
        if user is None:
            self.logger.warning(f"No user found for subscription {subscription_id}; skipping sync")
            return None

        kind = self._kind_for(subscription)
        stripe_status = stripe_field(subscription, "status")
        paid = stripe_status in PAID_SUBSCRIPTION_STATUSES
        status = MembershipStatus(
            map_subscription_status(
                stripe_status,
                bool(stripe_field(subscription, "cancel_at_period_end", False)),
            )
        )
        item = _first_item(subscription)
        start_date = to_business_date(
            stripe_field(subscription, "current_period_start")
            or stripe_field(item, "current_period_start")
        )
        end_date = to_business_date(
            stripe_field(subscription, "current_period_end") or stripe_field(item, "current_period_end")
        )
        amount_cents = stripe_field(stripe_field(item, "price"), "unit_amount") or 0

        with self.transaction():
            membership = self.membership_repository.get_or_create_for_user(user.id)
            membership.membership_kind = kind
            membership.status = status
            membership.stripe_subscription_id = subscription_id
            if customer_id:
                membership.stripe_customer_id = customer_id
            if paid:
                # Only a paid period opens or extends the window
                membership.start_date = start_date or membership.start_date or get_business_today()
                if kind == MembershipKind.LIFETIME:
                    membership.end_date = None
                elif end_date is not None:
                    membership.end_date = end_date
            elif membership.end_date is None and stripe_status not in UNPAID_SIGNUP_STATUSES:
                # A lapsed lifetime subscription runs to the end of its last period
                membership.end_date = end_date or get_business_today()
            self.membership_repository.flush()

            if start_date is not None:
                if paid:
                    purchase_status: Optional[PurchaseStatus] = PurchaseStatus.COMPLETED
                elif stripe_status in UNPAID_SIGNUP_STATUSES:
                    purchase_status = PurchaseStatus.PENDING
                else:
                    purchase_status = None
                self.membership_repository.record_purchase(
                    user_id=user.id,
                    kind=kind,
                    subscription_id=subscription_id,
                    start_date=start_date,
                    end_date=membership.end_date,
                    amount_paid_cents=amount_cents,
                    status=purchase_status,
                )

        self.log_operation(
            "sync_membership",
            user_id=user.id,
            subscription_id=subscription_id,
            kind=kind.value,
            status=status.value,
        )
        return membership

    @BaseService.measure_operation("start_membership_checkout")
    def start_checkout(self, user: User, kind: MembershipKind) -> HostedCheckout:
        """Create a subscription checkout, creating the Stripe customer on first use."""
        kind = MembershipKind(kind)
        if kind == MembershipKind.NONE:
            raise ValidationException("Choose a membership kind", code="MEMBERSHIP_KIND_REQUIRED")
        price_id = self.price_id_for(kind)

        membership = self.get_for_user(user.id)
        if membership is not None and membership.stripe_subscription_id and is_active_member(membership):
            raise BusinessRuleException(
                "You already have a membership", code="MEMBERSHIP_EXISTS"
            )

        with self.transaction():
            membership = self.membership_repository.get_or_create_for_user(user.id)
            if not membership.stripe_customer_id:
                membership.stripe_customer_id = self.stripe_service.create_customer(
                    user.id, user.email, user.full_name
                )
                self.membership_repository.flush()
            customer_id = membership.stripe_customer_id

        return self.stripe_service.create_membership_checkout(
            customer_id=customer_id,
            price_id=price_id,
            user_id=user.id,
            membership_kind=kind.value,
        )

    @BaseService.measure_operation("cancel_membership")
    def cancel(self, user: User) -> Optional[date]:
        """
        Cancel at period end. The validity window is kept.

        Returns:
            The date access ends (None for lifetime memberships)
        """
        membership = self.get_for_user(user.id)
        if membership is None or not membership.stripe_subscription_id:
            raise NotFoundException("No membership subscription found", code="MEMBERSHIP_NOT_FOUND")

        try:
            self.stripe_service.cancel_subscription_at_period_end(membership.stripe_subscription_id)
        except ServiceException:
            self.logger.error(f"Failed to cancel subscription for user {user.id}")
            raise

        with self.transaction():
            membership.status = MembershipStatus.CANCELLED
            self.membership_repository.flush()

        self.log_operation("cancel_membership", user_id=user.id, ends_on=str(membership.end_date))
        return membership.end_date
