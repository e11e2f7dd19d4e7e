from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status

from intake.api.dependencies import get_user_service
from intake.config.settings import Settings, get_settings
from intake.core.result import render, success
from intake.schemas.auth import LoginRequest, TokenResponse
from intake.schemas.user import UserRead
from intake.security.gate import Principal, get_current_principal
from intake.security.tokens import create_access_token
from intake.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(
    payload: LoginRequest,
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
):
    user = await service.authenticate(payload.email, payload.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(user.id, user.role.value, expires, settings, email=user.email)
    body = TokenResponse(
        access_token=token,
        expires_in=int(expires.total_seconds()),
        user=UserRead.model_validate(user),
    )
    return render(success("Login successful", body))


@router.get("/me")
async def me(
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
):
    return render(await service.find_one(principal.id))
