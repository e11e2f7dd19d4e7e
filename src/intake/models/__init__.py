r"""
Central import point for the ORM models.

    from intake.models import Application, ApplicationStatus, User, Role

Importing this package also registers every table on Base.metadata, which
`create_all` and the test fixtures rely on.
"""

from .application import Application, ApplicationStatus, Gender, RegistrationType
from .user import User, Role

__all__ = [
    "Application",
    "ApplicationStatus",
    "Gender",
    "RegistrationType",
    "User",
    "Role",
]
