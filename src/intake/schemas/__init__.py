from .application import ApplicationCreate, ApplicationUpdate, ApplicationRead
from .user import UserCreate, UserUpdate, UserRead
from .auth import LoginRequest, TokenResponse

__all__ = [
    "ApplicationCreate",
    "ApplicationUpdate",
    "ApplicationRead",
    "UserCreate",
    "UserUpdate",
    "UserRead",
    "LoginRequest",
    "TokenResponse",
]
