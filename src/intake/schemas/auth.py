from pydantic import EmailStr

from .base import CamelModel
from .user import UserRead


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead
