# backend/app/repositories/user_repository.py
"""
User Repository

Handles User data access: lookups by identity subject or email and the
first-seen profile mirror.
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User data access."""

    def __init__(self, db: Session):
        """Initialize with User model."""
        super().__init__(db, User)
        self.logger = logging.getLogger(__name__)

    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive email lookup."""
        if not email:
            return None
        try:
            return self.db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting user by email: {str(e)}")
            raise RepositoryException(f"Failed to get user by email: {str(e)}")

    def upsert_profile(
        self,
        user_id: str,
        email: str,
        full_name: Optional[str] = None,
        is_admin: Optional[bool] = None,
    ) -> User:
        """Create the profile row on first sight, refreshing email/name afterwards."""
        user = self.get_by_id(user_id)
        if user is None:
            return self.create(
                id=user_id,
                email=email,
                full_name=full_name,
                is_admin=bool(is_admin),
            )

        changed = False
        if email and user.email != email:
            user.email = email
            changed = True
        if full_name and user.full_name != full_name:
            user.full_name = full_name
            changed = True
        if is_admin is not None and user.is_admin != is_admin:
            user.is_admin = is_admin
            changed = True
        if changed:
            self.flush()
        return user
