# backend/app/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for the sauna booking platform.

This module defines the periodic task schedule for the application.
Tasks are scheduled using crontab expressions for precise timing control.
"""

import logging
import os
from typing import Any

from celery.schedules import crontab

from app.core.config import settings

# Main beat schedule configuration
CELERYBEAT_SCHEDULE = {
    # Reconcile abandoned checkouts against Stripe
    "expire-stale-pending-bookings": {
        "task": "app.tasks.booking_tasks.expire_stale_pending_bookings",
        "schedule": crontab(minute="*/10"),  # Every 10 minutes
        "options": {
            "queue": "bookings",
            "priority": 8,
        },
    },
    # Keep the community schedule open for the booking horizon
    "refresh-time-slots": {
        "task": "app.tasks.booking_tasks.refresh_time_slots",
        "schedule": crontab(hour=3, minute=15),  # Daily at 3:15 AM
        "kwargs": {"days_ahead": settings.slot_horizon_days},
        "options": {
            "queue": "bookings",
            "priority": 5,
        },
    },
}

# Schedule overrides for different environments
SCHEDULE_CONFIG = {
    "production": CELERYBEAT_SCHEDULE,
    "development": {
        "expire-stale-pending-bookings": {
            "task": "app.tasks.booking_tasks.expire_stale_pending_bookings",
            "schedule": crontab(minute="*/2"),
            "options": {"queue": "bookings", "priority": 8},
        },
    },
}


def _parse_cron_expression(cron_expr: str) -> Any:
    """Convert a five-field cron expression into a Celery crontab schedule."""
    parts = cron_expr.strip().split()
    if len(parts) != 5:
        logging.getLogger(__name__).warning(
            "Invalid SLOT_REFRESH_CRON expression '%s'; falling back to 15 3 * * *",
            cron_expr,
        )
        parts = ["15", "3", "*", "*", "*"]
    minute, hour, day_of_month, month_of_year, day_of_week = parts
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


def get_beat_schedule(environment: str = "production") -> dict[str, dict[str, Any]]:
    """
    Get the beat schedule for the specified environment.

    Args:
        environment: The environment name (production, development, test)

    Returns:
        Mapping of task name to Celery beat configuration dict
    """
    base: dict[str, dict[str, Any]] = dict(CELERYBEAT_SCHEDULE)
    overrides = SCHEDULE_CONFIG.get(environment)
    if overrides:
        base.update(overrides)
    refresh_cron = os.getenv("SLOT_REFRESH_CRON")
    if refresh_cron:
        base["refresh-time-slots"] = dict(
            base["refresh-time-slots"], schedule=_parse_cron_expression(refresh_cron)
        )
    return base
