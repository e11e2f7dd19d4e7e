"""
User repository for handling user-specific database operations.

Adds lookup by (normalized) email on top of the generic CRUD methods; the email is
both the unique key for registration and the login identifier.
"""
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from intake.models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for User entity operations.
    """

    SEARCH_FIELDS = ("email", "first_name", "last_name", "phone")
    RECENCY_FIELD = "created_at"

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> User | None:
        """
        Get a user by email address.

        Emails are stored lowercase, so the lookup value is normalized the same way.
        """
        return await self.find_by_field("email", email.strip().lower())
