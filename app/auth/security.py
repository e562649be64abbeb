"""Password hashing, OTP generation and signed session tokens."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from authlib.jose import JoseError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

JWT_ALGORITHM = "HS256"
TOKEN_TYPE = "admin"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        # unknown hash format (e.g. a bcrypt hash from an older seed)
        return False


def generate_otp() -> str:
    """Six-digit numeric one-time code, never starting with 0."""
    return str(secrets.randbelow(900000) + 100000)


def create_access_token(
    admin_id: int,
    email: str,
    secret: str,
    expires_hours: int = 8,
    now: Optional[datetime] = None,
) -> str:
    """Sign a session token for an admin."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(admin_id),
        "email": email,
        "type": TOKEN_TYPE,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(hours=expires_hours)).timestamp()),
    }
    token = jwt.encode({"alg": JWT_ALGORITHM}, payload, secret)
    return token.decode("utf-8") if isinstance(token, bytes) else token


def decode_access_token(token: str, secret: str) -> Optional[Dict[str, Any]]:
    """
    Verify signature, expiry and token type.

    Returns the claims, or None for any malformed, forged or expired token.
    Callers never learn which check failed.
    """
    try:
        claims = jwt.decode(token, secret)
        claims.validate()
    except (JoseError, ValueError):
        return None
    if claims.get("type") != TOKEN_TYPE or not claims.get("sub"):
        return None
    return dict(claims)
