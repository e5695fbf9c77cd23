"""
Request identity.

The caller is whoever the bearer token names. Login and refresh stay in the
external auth service.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from freight_dispatch.app.core.exceptions import AuthenticationError
from freight_dispatch.app.core.jwt import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """
    Token claims of the calling dispatcher, accountant or service.

    Raises:
        AuthenticationError: missing, expired or malformed token
    """
    if credentials is None:
        raise AuthenticationError("Bearer token required")

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise AuthenticationError("Could not validate credentials")
    return claims
