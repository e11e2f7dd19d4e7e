from datetime import datetime

from pydantic import EmailStr, Field

from intake.models.user import Role
from .base import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)  # bcrypt ignores bytes past 72
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=32)
    role: Role = Role.USER
    is_active: bool = True


class UserUpdate(CamelModel):
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6, max_length=72)
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=32)
    role: Role | None = None
    is_active: bool | None = None


class UserRead(CamelModel):
    """Public view of a user. The password hash is never part of it."""

    id: int
    email: str
    first_name: str
    last_name: str
    phone: str | None
    avatar: str | None
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: datetime
