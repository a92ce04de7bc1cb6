"""
Timezone utilities for the sauna booking platform.

Session dates, slot generation and membership windows are all reckoned in the
business timezone (``settings.business_timezone``), not UTC.
"""

from datetime import date, datetime
from typing import Optional

import pytz

from .config import settings


def get_business_timezone() -> pytz.BaseTzInfo:
    """Return the configured business timezone."""
    return pytz.timezone(settings.business_timezone)


def get_business_now() -> datetime:
    """Current datetime in the business timezone."""
    return datetime.now(get_business_timezone())


def get_business_today() -> date:
    """Today's date in the business timezone."""
    return get_business_now().date()


def to_business_date(timestamp: Optional[int]) -> Optional[date]:
    """
    Convert a Unix timestamp (as sent by Stripe) to a business-local date.

    Args:
        timestamp: Seconds since the epoch, or None

    Returns:
        The local date, or None when no timestamp was given
    """
    if not timestamp:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=get_business_timezone()).date()
