from .base_repository import BaseRepository
from .application_repository import ApplicationRepository
from .user_repository import UserRepository

__all__ = ["BaseRepository", "ApplicationRepository", "UserRepository"]
