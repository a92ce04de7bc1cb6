"""Default pricing configuration values (amounts in cents)."""

from __future__ import annotations

from typing import Any, Dict

PRICING_DEFAULTS: Dict[str, Any] = {
    "community_rate_cents": 2500,
    "private_rate_cents": 20000,
    # Active members sit community sessions for free.
    "member_community_rate_cents": 0,
    "membership_price_cents": {
        "monthly": 4900,
        "annual": 49000,
        "lifetime": 150000,
    },
}

COMMUNITY_RATE_CENTS: int = PRICING_DEFAULTS["community_rate_cents"]
PRIVATE_RATE_CENTS: int = PRICING_DEFAULTS["private_rate_cents"]
