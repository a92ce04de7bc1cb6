"""
Centralized task enqueue helper.

Services enqueue background work by task name so they never import the
task modules (and through them the Celery app) directly.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def enqueue_task(
    task_name: str,
    args: Optional[Tuple[Any, ...]] = None,
    kwargs: Optional[Dict[str, Any]] = None,
    **options: Any,
) -> Any:
    """
    Enqueue a Celery task by name.

    Args:
        task_name: Fully qualified task name (e.g., "app.tasks.email.send_booking_confirmation")
        args: Positional arguments for the task
        kwargs: Keyword arguments for the task
        **options: Additional Celery apply_async options (countdown, eta, etc.)

    Returns:
        AsyncResult from Celery
    """
    from app.tasks.celery_app import celery_app

    args = args or ()
    kwargs = kwargs or {}
    headers = options.pop("headers", None) or {}

    logger.debug(f"Enqueueing task {task_name}")
    return celery_app.send_task(task_name, args=args, kwargs=kwargs, headers=headers, **options)
