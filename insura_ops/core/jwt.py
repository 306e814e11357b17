"""Access token inspection for Supabase sessions.

The backend is the authority on token validity; this module only reads the
claims a client needs locally (subject, expiry, role) so a stored session can
be refreshed before it is used.
"""

import time
from typing import Any, Dict, Optional

import jwt
from pydantic import BaseModel

from insura_ops.utils.logging import get_logger

LOGGER = get_logger(__name__)


class TokenClaims(BaseModel):
    """Claims carried by a Supabase access token."""

    sub: str
    exp: int
    email: Optional[str] = None
    role: str = "authenticated"
    iat: Optional[int] = None
    iss: Optional[str] = None
    aud: Optional[str] = None
    session_id: Optional[str] = None
    app_metadata: Optional[Dict[str, Any]] = None
    user_metadata: Optional[Dict[str, Any]] = None


def decode_access_token(token: str, jwt_secret: Optional[str] = None) -> TokenClaims:
    """Decode an access token.

    Args:
        token: JWT access token
        jwt_secret: When given, the HS256 signature and expiry are verified

    Returns:
        Decoded claims

    Raises:
        jwt.InvalidTokenError: If the token is malformed (or fails verification)
    """
    if jwt_secret:
        payload = jwt.decode(
            token,
            jwt_secret,
            algorithms=["HS256"],
            audience="authenticated",
            options={"require": ["sub", "exp"]},
        )
    else:
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False, "verify_aud": False},
        )
    return TokenClaims(**payload)


def is_token_expired(token: str, leeway: int = 30) -> bool:
    """Check whether an access token is expired or about to expire.

    Unreadable tokens count as expired so callers fall back to a refresh.
    """
    try:
        claims = decode_access_token(token)
    except (jwt.InvalidTokenError, ValueError) as e:
        LOGGER.warning(f"Unreadable access token treated as expired: {e}")
        return True
    return claims.exp <= int(time.time()) + leeway
