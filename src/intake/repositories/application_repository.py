"""
Application repository: storage for citizen applications.
"""
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from intake.models.application import Application
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ApplicationRepository(BaseRepository[Application]):
    """
    Repository for Application entity operations.

    Declares the search fields and the recency column the application listing uses.
    """

    SEARCH_FIELDS = ("first_name", "last_name", "email", "national_id", "registration_type")
    RECENCY_FIELD = "applied_at"

    def __init__(self, db: AsyncSession):
        super().__init__(Application, db)
