"""
FastAPI providers for services and their collaborators.

Tests swap collaborators through `app.dependency_overrides`, e.g. a fake uploader
for `get_media_uploader` or a low-cost hasher for `get_hasher`.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from intake.config.settings import Settings, get_settings
from intake.database.session import get_async_session
from intake.media.uploader import CloudinaryUploader, MediaUploader, UnconfiguredUploader
from intake.security.passwords import BcryptHasher, Hasher
from intake.services.application_service import ApplicationService
from intake.services.user_service import UserService


def get_hasher(settings: Settings = Depends(get_settings)) -> Hasher:
    return BcryptHasher(rounds=settings.BCRYPT_ROUNDS)


def get_media_uploader(settings: Settings = Depends(get_settings)) -> MediaUploader:
    if settings.media_configured:
        return CloudinaryUploader.from_settings(settings)
    return UnconfiguredUploader()


def get_application_service(
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> ApplicationService:
    return ApplicationService(db, max_page_size=settings.MAX_PAGE_SIZE)


def get_user_service(
    db: AsyncSession = Depends(get_async_session),
    hasher: Hasher = Depends(get_hasher),
    uploader: MediaUploader = Depends(get_media_uploader),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(db, hasher=hasher, uploader=uploader, settings=settings)
