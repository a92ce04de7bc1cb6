"""Shared Stripe status mapping helpers."""

from __future__ import annotations

from typing import Optional

STRIPE_SUBSCRIPTION_TO_MEMBERSHIP_STATUS = {
    "active": "active",
    "trialing": "active",
    "past_due": "past_due",
    "unpaid": "past_due",
    "incomplete": "past_due",
    "canceled": "cancelled",
    "cancelled": "cancelled",
    "incomplete_expired": "cancelled",
}


def map_subscription_status(
    stripe_status: Optional[str], cancel_at_period_end: bool = False
) -> str:
    """Map a Stripe subscription status to a membership status."""
    if not stripe_status:
        return "none"
    if cancel_at_period_end and stripe_status in {"active", "trialing"}:
        return "cancelled"
    return STRIPE_SUBSCRIPTION_TO_MEMBERSHIP_STATUS.get(stripe_status, "past_due")


# Subscription states in which the member has paid for the current period
PAID_SUBSCRIPTION_STATUSES = frozenset({"active", "trialing"})

# The first payment never went through; no period was ever paid for
UNPAID_SIGNUP_STATUSES = frozenset({"incomplete", "incomplete_expired"})
