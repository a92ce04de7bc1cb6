# backend/app/repositories/membership_repository.py
"""
Membership Repository

Data access for memberships and the per-period purchase audit trail.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.membership import (
    Membership,
    MembershipKind,
    MembershipPurchase,
    MembershipStatus,
    PurchaseStatus,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class MembershipRepository(BaseRepository[Membership]):
    def __init__(self, db: Session):
        super().__init__(db, Membership)
        self.logger = logging.getLogger(__name__)

    def get_by_user(self, user_id: str) -> Optional[Membership]:
        return self.find_one_by(user_id=user_id)

    def get_or_create_for_user(self, user_id: str) -> Membership:
        membership = self.get_by_user(user_id)
        if membership is None:
            membership = self.create(
                user_id=user_id,
                membership_kind=MembershipKind.NONE,
                status=MembershipStatus.NONE,
            )
        return membership

    def list_memberships(
        self, status: Optional[MembershipStatus] = None, limit: int = 100, offset: int = 0
    ) -> List[Membership]:
        query = self._build_query()
        if status is not None:
            query = query.filter(Membership.status == status)
        query = query.order_by(Membership.created_at.desc())
        return self._execute_query(query.offset(offset).limit(limit))

    def record_purchase(
        self,
        user_id: str,
        kind: MembershipKind,
        subscription_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        amount_paid_cents: int,
        status: Optional[PurchaseStatus],
    ) -> MembershipPurchase:
        """
        Upsert the purchase row for one subscription period.

        A ``status`` of None leaves an existing row's status alone (new rows start pending).
        """
        purchase = (
            self.db.query(MembershipPurchase)
            .filter(
                MembershipPurchase.stripe_subscription_id == subscription_id,
                MembershipPurchase.start_date == start_date,
            )
            .first()
        )
        if purchase is None:
            purchase = MembershipPurchase(
                user_id=user_id,
                membership_kind=kind,
                stripe_subscription_id=subscription_id,
                start_date=start_date,
            )
            self.db.add(purchase)

        purchase.membership_kind = kind
        purchase.end_date = end_date
        purchase.amount_paid_cents = amount_paid_cents
        if status is not None:
            purchase.status = status
        elif purchase.status is None:
            purchase.status = PurchaseStatus.PENDING
        self.flush()
        return purchase
