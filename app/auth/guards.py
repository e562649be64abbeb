"""Bearer-token guard for admin routes."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from litestar.connection import ASGIConnection
from litestar.exceptions import NotAuthorizedException
from litestar.handlers.base import BaseRouteHandler

from app.auth.security import decode_access_token

logger = logging.getLogger("AISolutions.auth")

BEARER_RE = re.compile(r"^Bearer\s+(\S+)$", re.IGNORECASE)


@dataclass(frozen=True)
class AdminIdentity:
    id: int
    email: str


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    match = BEARER_RE.match((header or "").strip())
    return match.group(1) if match else None


async def require_admin_guard(connection: ASGIConnection, handler: BaseRouteHandler) -> None:
    """Reject the request with 401 unless it carries a valid admin token."""
    path = connection.url.path
    token = extract_bearer_token(connection.headers.get("authorization"))
    if not token:
        logger.warning(f"Admin access attempted without token: {path}")
        raise NotAuthorizedException("Unauthorized: missing token")

    settings = connection.app.state.settings
    claims = decode_access_token(token, settings.jwt_secret)
    if not claims:
        logger.warning(f"Admin access attempted with invalid token: {path}")
        raise NotAuthorizedException("Unauthorized: invalid or expired token")

    connection.state.admin = AdminIdentity(id=int(claims["sub"]), email=claims.get("email", ""))
    logger.debug(f"Admin access granted for: {claims.get('email')}")
