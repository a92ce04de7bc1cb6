"""
Bearer token verification.

Accounts live with the external identity provider. This module only verifies
the provider's HS256 access tokens and extracts the claims the booking flow
needs; it never issues tokens.
"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from jwt import PyJWTError

from .core.config import settings

logger = logging.getLogger(__name__)

bearer_scheme_optional = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    email: str
    full_name: Optional[str] = None
    is_admin: bool = False


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode a JWT access token, checking the audience when one is configured."""
    secret = settings.auth_jwt_secret.get_secret_value()
    if settings.auth_jwt_audience:
        payload_raw = jwt.decode(
            token,
            secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
        )
    else:
        payload_raw = jwt.decode(
            token,
            secret,
            algorithms=[settings.auth_jwt_algorithm],
            options={"verify_aud": False},
        )
    return cast(Dict[str, Any], payload_raw)


def claims_from_payload(payload: Dict[str, Any]) -> Optional[TokenClaims]:
    subject = payload.get("sub")
    email = payload.get("email")
    if not isinstance(subject, str) or not subject or not isinstance(email, str) or not email:
        return None

    metadata = payload.get("user_metadata") or {}
    full_name = payload.get("name") or metadata.get("full_name")
    role = payload.get("app_role") or (payload.get("app_metadata") or {}).get("role")
    return TokenClaims(
        subject=subject,
        email=email.strip().lower(),
        full_name=full_name if isinstance(full_name, str) else None,
        is_admin=role == "admin",
    )


async def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme_optional),
) -> TokenClaims:
    """
    Dependency returning verified token claims.

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    invalid_credentials = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(credentials.credentials)
    except PyJWTError as e:
        logger.error(f"JWT validation error: {str(e)}")
        raise invalid_credentials

    claims = claims_from_payload(payload)
    if claims is None:
        logger.warning("Token payload missing 'sub' or 'email' field")
        raise invalid_credentials
    return claims


async def get_token_claims_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme_optional),
) -> Optional[TokenClaims]:
    """
    Like get_token_claims, but anonymous requests (and bad tokens) yield None.

    Used for endpoints that support both signed-in and guest access.
    """
    if credentials is None or not credentials.credentials:
        return None
    try:
        payload = decode_access_token(credentials.credentials)
    except PyJWTError as e:
        logger.debug(f"JWT validation error in optional auth: {str(e)}")
        return None
    return claims_from_payload(payload)
