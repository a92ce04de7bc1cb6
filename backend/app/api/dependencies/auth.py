"""
Authentication and authorization dependencies.

Verified token claims are mirrored into the local ``users`` table the first
time a subject is seen, so bookings, waivers and memberships can reference it.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...auth import TokenClaims, get_token_claims, get_token_claims_optional
from ...core.config import settings
from ...models.user import User
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


def _sync_user(db: Session, claims: TokenClaims) -> User:
    is_admin = claims.is_admin or (
        bool(settings.admin_email) and claims.email == settings.admin_email.strip().lower()
    )
    repository = RepositoryFactory.create_user_repository(db)
    try:
        user = repository.upsert_profile(
            claims.subject,
            claims.email,
            full_name=claims.full_name,
            is_admin=True if is_admin else None,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return user


async def get_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> User:
    return _sync_user(db, claims)


async def get_current_user_optional(
    claims: Optional[TokenClaims] = Depends(get_token_claims_optional),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if claims is None:
        return None
    return _sync_user(db, claims)


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Require an administrator.

    Raises:
        HTTPException: 403 if the user is not an administrator
    """
    if not current_user.is_admin:
        logger.warning(f"Non-admin user {current_user.id} attempted an admin action")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return current_user
