# =============================================================================
# Access gate - FastAPI auth dependencies
# =============================================================================
# Evaluated before any service call. Denials are plain HTTPExceptions
# (401/403) and never go through the result envelope.
#
# Usage:
#   @router.get("/protected")
#   async def protected(principal: Principal = Depends(get_current_principal)):
#       ...
#
#   @router.delete("/{id}", dependencies=[Depends(require_roles(Role.ADMIN))])
# =============================================================================

from dataclasses import dataclass
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from intake.config.settings import Settings, get_settings
from intake.database.session import get_async_session
from intake.models.user import Role
from intake.repositories.user_repository import UserRepository
from intake.security.tokens import TokenError, decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401 rather than 403
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    id: int
    email: str | None
    role: Role


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_async_session),
) -> Principal:
    """
    Resolve the caller from the bearer token and the stored account.

    The role comes from the stored user, so a changed role applies at once.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired, or the
            account no longer exists or is inactive
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")

    try:
        claims = decode_access_token(credentials.credentials, settings)
    except TokenError as e:
        raise _unauthorized(str(e)) from e

    try:
        user_id = int(claims["sub"])
        Role(claims.get("role"))
    except ValueError as e:
        logger.warning("Token carried a malformed subject or role")
        raise _unauthorized("Invalid token") from e

    user = await UserRepository(db).get_by_id(user_id)
    if user is None or not user.is_active:
        logger.info("gate.account_unavailable", extra={"principal_id": user_id})
        raise _unauthorized("Account is inactive or no longer exists")

    principal = Principal(id=user.id, email=user.email, role=user.role)

    logger.debug(f"Authenticated principal: {principal.id}")
    return principal


def require_roles(*roles: Role):
    """
    Dependency factory: allow the request only when the principal holds one of `roles`.

    Raises:
        HTTPException: 401 via get_current_principal, 403 when the role is not allowed
    """
    allowed = frozenset(roles)

    async def _gate(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            logger.info(
                "gate.forbidden",
                extra={"principal_id": principal.id, "role": principal.role.value},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _gate


async def get_optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_async_session),
) -> Principal | None:
    """
    Like get_current_principal, but anonymous callers get None.
    A token that is present but invalid is still rejected with 401.
    """
    if credentials is None:
        return None
    return await get_current_principal(credentials, settings, db)
