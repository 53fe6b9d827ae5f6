"""
Authentication dependencies - verify Google sign-in tokens.

Users sign in with Google on the client. The access token is sent in the
Authorization header and verified against the identity provider's
userinfo endpoint. Any verified user may call every endpoint.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Depends, Header

from ..config import Settings
from ..errors import UnauthenticatedError
from .deps import get_settings

logger = logging.getLogger(__name__)


@dataclass
class UserContext:
    """Authenticated caller."""

    uid: str
    email: Optional[str] = None


def bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an 'Authorization: Bearer <token>' header."""
    if not authorization:
        raise UnauthenticatedError()
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthenticatedError("Invalid authentication scheme")
    return parts[1]


async def verify_token(
    token: str,
    userinfo_url: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> UserContext:
    """
    Verify an access token and return the caller's identity.

    Raises:
        UnauthenticatedError: if the provider rejects the token
    """
    try:
        async with httpx.AsyncClient(timeout=10, transport=transport) as client:
            response = await client.get(
                userinfo_url, headers={"Authorization": f"Bearer {token}"}
            )
    except httpx.HTTPError as e:
        logger.warning("Token validation request failed: %s", e)
        raise UnauthenticatedError("Could not verify authentication token") from e

    if response.status_code != 200:
        logger.warning("Token validation failed: %s", response.text)
        raise UnauthenticatedError("Invalid authentication token")

    try:
        info = response.json()
    except ValueError as e:
        logger.warning("Token validation returned a non-JSON body")
        raise UnauthenticatedError("Invalid authentication token") from e
    if not isinstance(info, dict):
        raise UnauthenticatedError("Invalid authentication token")

    uid = info.get("sub")
    if not uid:
        raise UnauthenticatedError("Token has no subject")
    return UserContext(uid=str(uid), email=info.get("email"))


async def get_current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> UserContext:
    """Dependency: the verified caller, or 401."""
    token = bearer_token(authorization)
    return await verify_token(token, settings.auth_userinfo_url)
