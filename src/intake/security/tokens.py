"""
Signed access tokens (JWT, HS256 by default).

Claims:
    sub   user id (string)
    role  user role at issue time
    email optional, informational only
    iat   issued-at
    exp   expiry
"""
from datetime import datetime, timedelta, timezone
import logging

from jose import jwt, JWTError, ExpiredSignatureError

from intake.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Raised when a token cannot be decoded or has expired."""


def create_access_token(
    subject: str | int,
    role: str,
    expires_delta: timedelta | None = None,
    settings: Settings | None = None,
    email: str | None = None,
) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {
        "sub": str(subject),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings | None = None) -> dict:
    """
    Verify signature and expiry and return the claims.

    Raises:
        TokenError: expired, tampered or malformed token, or missing `sub`
    """
    settings = settings or get_settings()
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenError("Token has expired") from e
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise TokenError("Invalid token") from e

    if not claims.get("sub"):
        raise TokenError("Invalid token: missing subject")
    return claims
