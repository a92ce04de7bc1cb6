# backend/app/tasks/__init__.py
"""
Celery tasks package for the sauna booking platform.

This package contains all asynchronous tasks:
- Booking confirmation email retries
- Stale pending booking reconciliation
- Rolling time slot generation

Task modules are registered through ``celery_app.conf.imports``.
"""

from app.tasks.celery_app import BaseTask, celery_app

__all__ = [
    "celery_app",
    "BaseTask",
]

# This allows running celery with: celery -A app.tasks worker
