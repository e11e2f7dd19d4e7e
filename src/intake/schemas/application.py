from datetime import date, datetime

from pydantic import EmailStr, Field

from intake.models.application import ApplicationStatus, Gender, RegistrationType
from .base import CamelModel


class ApplicationCreate(CamelModel):
    message: str | None = None
    status: ApplicationStatus | None = None
    registration_type: RegistrationType
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    national_id: str = Field(min_length=1, max_length=32)
    gender: Gender
    date_of_birth: date
    telephone: str = Field(min_length=1, max_length=32)
    email: EmailStr | None = None
    province: str = Field(min_length=1, max_length=100)
    district: str = Field(min_length=1, max_length=100)
    sector: str = Field(min_length=1, max_length=100)
    cell: str = Field(min_length=1, max_length=100)
    village: str = Field(min_length=1, max_length=100)
    education_level: str = Field(min_length=1, max_length=150)
    primary_skill: str = Field(min_length=1, max_length=150)
    secondary_skill: str | None = Field(default=None, max_length=150)
    tertiary_skill: str | None = Field(default=None, max_length=150)
    other_skills: str | None = None


class ApplicationUpdate(CamelModel):
    """Partial update: only fields sent by the client are applied."""

    message: str | None = None
    status: ApplicationStatus | None = None
    registration_type: RegistrationType | None = None
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    national_id: str | None = Field(default=None, min_length=1, max_length=32)
    gender: Gender | None = None
    date_of_birth: date | None = None
    telephone: str | None = Field(default=None, min_length=1, max_length=32)
    email: EmailStr | None = None
    province: str | None = Field(default=None, min_length=1, max_length=100)
    district: str | None = Field(default=None, min_length=1, max_length=100)
    sector: str | None = Field(default=None, min_length=1, max_length=100)
    cell: str | None = Field(default=None, min_length=1, max_length=100)
    village: str | None = Field(default=None, min_length=1, max_length=100)
    education_level: str | None = Field(default=None, min_length=1, max_length=150)
    primary_skill: str | None = Field(default=None, min_length=1, max_length=150)
    secondary_skill: str | None = Field(default=None, max_length=150)
    tertiary_skill: str | None = Field(default=None, max_length=150)
    other_skills: str | None = None


class ApplicationRead(CamelModel):
    id: int
    message: str | None
    status: ApplicationStatus
    registration_type: str
    first_name: str
    last_name: str
    national_id: str
    gender: Gender
    date_of_birth: date
    telephone: str
    email: str | None
    province: str
    district: str
    sector: str
    cell: str
    village: str
    education_level: str
    primary_skill: str
    secondary_skill: str | None
    tertiary_skill: str | None
    other_skills: str | None
    applied_at: datetime
    updated_at: datetime
