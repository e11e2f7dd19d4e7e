from sqlalchemy import Date, DateTime, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import date, datetime
from enum import Enum as PyEnum
from intake.database.base import Base


# ------------------------------
# Enums
# ------------------------------
class ApplicationStatus(str, PyEnum):
    """Review state of an application."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Gender(str, PyEnum):
    GABO = "GABO"    # male
    GORE = "GORE"    # female


class RegistrationType(str, PyEnum):
    """Program the applicant registers for."""
    KWIGA_IMYUGA = "KWIGA_IMYUGA"              # vocational training
    KWIHANGIRA_IMIRIMO = "KWIHANGIRA_IMIRIMO"  # self-employment support


# ------------------------------
# Application Model
# ------------------------------
class Application(Base):
    """
    SQLAlchemy model for a program application.

    `national_id` is the uniqueness key: at most one application per national id.
    `applied_at` is the recency field used to order listings newest-first.
    """
    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )

    # Optional free-text note from the applicant
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus, name="application_status"),
        default=ApplicationStatus.PENDING,
        nullable=False,
        index=True  # filtered on by the listing endpoint
    )

    # Stored as plain text (validated against RegistrationType at the API boundary)
    # so the listing search can run a substring match on it.
    registration_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # --- Personal information ---
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    national_id: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        index=True,
        nullable=False
    )

    gender: Mapped[Gender] = mapped_column(SQLEnum(Gender, name="gender"), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    telephone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # --- Location ---
    province: Mapped[str] = mapped_column(String(100), nullable=False)
    district: Mapped[str] = mapped_column(String(100), nullable=False)
    sector: Mapped[str] = mapped_column(String(100), nullable=False)
    cell: Mapped[str] = mapped_column(String(100), nullable=False)
    village: Mapped[str] = mapped_column(String(100), nullable=False)

    # --- Education and skills ---
    education_level: Mapped[str] = mapped_column(String(150), nullable=False)
    primary_skill: Mapped[str] = mapped_column(String(150), nullable=False)
    secondary_skill: Mapped[str | None] = mapped_column(String(150), nullable=True)
    tertiary_skill: Mapped[str | None] = mapped_column(String(150), nullable=True)
    other_skills: Mapped[str | None] = mapped_column(Text, nullable=True)

    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id!r}, national_id={self.national_id!r}, status={self.status!r})>"
