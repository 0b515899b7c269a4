"""
Supabase JWT authentication.

The web client signs in through Supabase Auth and forwards its access token as
a bearer token. Recommendation reads accept anonymous callers
(``get_current_user``); anything that reads or writes a user's own history
requires a verified token (``require_auth``).
"""

from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import get_settings


security = HTTPBearer(
    scheme_name="Supabase JWT",
    description="Access token issued by Supabase Auth.",
    auto_error=False,
)


@dataclass
class SupabaseUser:
    """
    Authenticated user from a Supabase JWT.

    Attributes:
        id: User's UUID (from 'sub' claim)
        email: User's email address
        role: Postgres role (usually 'authenticated')
        session_id: Current auth session UUID
        is_anonymous: True for Supabase anonymous sign-ins
    """
    id: str
    email: Optional[str] = None
    role: str = "authenticated"
    session_id: Optional[str] = None
    is_anonymous: bool = False


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_jwt(token: str) -> dict:
    """
    Verify and decode a Supabase JWT token.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or cannot be
            verified because no secret is configured.
    """
    secret = get_settings().supabase_jwt_secret
    if not secret:
        raise _unauthorized("Token verification is not configured")

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience="authenticated",
            options={
                "verify_exp": True,
                "verify_aud": True,
                "require": ["sub", "exp", "aud"],
            },
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidAudienceError:
        raise _unauthorized("Invalid token audience")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {e}")


def extract_user(payload: dict) -> SupabaseUser:
    return SupabaseUser(
        id=payload["sub"],
        email=payload.get("email"),
        role=payload.get("role", "authenticated"),
        session_id=payload.get("session_id"),
        is_anonymous=payload.get("is_anonymous", False),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[SupabaseUser]:
    """
    Optional authentication: None for anonymous visitors.

    A token that is present but invalid is still rejected with 401.
    """
    if not credentials or not credentials.credentials:
        return None
    return extract_user(verify_jwt(credentials.credentials))


async def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> SupabaseUser:
    """Mandatory authentication; raises 401 without a valid bearer token."""
    if not credentials or not credentials.credentials:
        raise _unauthorized("Authorization header required")
    return extract_user(verify_jwt(credentials.credentials))
