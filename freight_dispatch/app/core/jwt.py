"""
Bearer token handling.

Tokens are issued by the external authentication service. This service shares
its signing key and reads three claims: `sub` (username), `user_id` and `role`.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from freight_dispatch.app.core.config import settings
from freight_dispatch.app.models.enums import UserRole

REQUIRED_CLAIMS = ("sub", "user_id", "role")


def create_access_token(
    username: str,
    user_id: int,
    role: UserRole,
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Sign a token with the shared key.

    Service callers such as the invoicing collaborator mint their tokens this
    way, and so does the test suite.
    """
    lifetime = timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
    claims = {
        "sub": username,
        "user_id": user_id,
        "role": role.value,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired token that names a user and a role; None otherwise."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    if any(claims.get(name) in (None, "") for name in REQUIRED_CLAIMS):
        return None
    return claims
