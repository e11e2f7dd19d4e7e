"""
User service: the write workflow bound to the `users` table.

On top of the shared workflow it
    - lower-cases emails before the uniqueness pre-check
    - validates the role and the optional avatar
    - hashes passwords (never stored or returned in clear, never returned hashed)
    - uploads the avatar after the pre-check, and removes it again if the write fails
"""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from intake.config.settings import Settings
from intake.core.result import Envelope, Failure, internal_error, validation_error
from intake.media.uploader import MediaUploader, MediaUploadError
from intake.media.validation import AvatarFile, validate_avatar
from intake.models.user import Role, User
from intake.repositories.user_repository import UserRepository
from intake.schemas.user import UserCreate, UserRead, UserUpdate
from intake.security.passwords import Hasher
from .write_workflow import Compensation, ConflictCheckedWriteWorkflow, ResourceSpec

logger = logging.getLogger(__name__)

USER_RESOURCE = ResourceSpec(
    name="User",
    unique_field="email",
    unique_label="email",
    search_fields=UserRepository.SEARCH_FIELDS,
    filter_field="role",
    filter_type=Role,
    recency_field=UserRepository.RECENCY_FIELD,
)


def role_problem(role) -> dict | None:
    """Field error for a role outside the Role enum, None when the role is valid."""
    try:
        Role(role)
    except ValueError:
        valid = ", ".join(r.value for r in Role)
        return {"field": "role", "message": f"Invalid role: {role}. Valid roles are: {valid}"}
    return None


class UserService(ConflictCheckedWriteWorkflow[User]):

    def __init__(self, db: AsyncSession, hasher: Hasher, uploader: MediaUploader, settings: Settings):
        super().__init__(UserRepository(db), USER_RESOURCE, max_page_size=settings.MAX_PAGE_SIZE)
        self.hasher = hasher
        self.uploader = uploader
        self.settings = settings

    # =================================================================================================================
    # Workflow hooks
    # =================================================================================================================

    def normalize(self, fields: dict) -> dict:
        if isinstance(fields.get("email"), str):
            fields["email"] = fields["email"].strip().lower()
        return fields

    def _check(self, fields: dict, avatar: AvatarFile | None) -> Failure | None:
        problems = []
        role = fields.get("role")
        if role is not None:
            problem = role_problem(role)
            if problem is not None:
                problems.append(problem)
            else:
                fields["role"] = Role(role)
        if avatar is not None:
            problems.extend(validate_avatar(avatar, self.settings))

        if problems:
            return validation_error(problems[0]["message"], problems)
        return None

    async def validate_create(self, fields: dict, avatar: AvatarFile | None = None, **context) -> Failure | None:
        return self._check(fields, avatar)

    async def validate_update(self, existing: User, patch: dict, avatar: AvatarFile | None = None, **context) -> Failure | None:
        return self._check(patch, avatar)

    async def _hash(self, password: str) -> str:
        # bcrypt is CPU bound
        return await asyncio.to_thread(self.hasher.hash, password)

    async def _upload(self, avatar: AvatarFile | None, compensations: list[Compensation]) -> str | None:
        if avatar is None:
            return None
        uploaded = await self.uploader.upload(avatar.content, avatar.filename, avatar.content_type)

        async def discard() -> None:
            await self.uploader.destroy(uploaded.public_id)
            logger.info("user.avatar.discarded", extra={"public_id": uploaded.public_id})

        compensations.append(discard)
        return uploaded.url

    async def prepare_create(self, fields: dict, avatar: AvatarFile | None = None, **context):
        compensations: list[Compensation] = []
        values = dict(fields)
        values["hashed_password"] = await self._hash(values.pop("password"))
        avatar_url = await self._upload(avatar, compensations)
        if avatar_url:
            values["avatar"] = avatar_url
        return values, compensations

    async def prepare_update(self, existing: User, patch: dict, avatar: AvatarFile | None = None, **context):
        compensations: list[Compensation] = []
        values = dict(patch)
        password = values.pop("password", None)
        if password:
            values["hashed_password"] = await self._hash(password)
        avatar_url = await self._upload(avatar, compensations)
        if avatar_url:
            values["avatar"] = avatar_url
        return values, compensations

    def serialize(self, entity: User) -> UserRead:
        return UserRead.model_validate(entity)

    def failure_for(self, exc: Exception, action: str) -> Failure | None:
        if isinstance(exc, MediaUploadError):
            logger.error(f"user.{action}.avatar_upload_failed", exc_info=exc)
            return internal_error("Failed to upload avatar")
        return None

    # =================================================================================================================
    # Schema-typed entry points used by the API layer
    # =================================================================================================================

    async def create_user(self, data: UserCreate, avatar: AvatarFile | None = None) -> Envelope:
        return await self.create(data.model_dump(), avatar=avatar)

    async def update_user(self, user_id: int, data: UserUpdate, avatar: AvatarFile | None = None) -> Envelope:
        return await self.update(user_id, data.model_dump(exclude_unset=True), avatar=avatar)

    async def list_users(
        self,
        page: int | None = 1,
        page_size: int | None = None,
        search: str | None = None,
        role: str | None = None,
    ) -> Envelope:
        return await self.find_all(page=page, page_size=page_size, search=search, filter_value=role)

    async def authenticate(self, email: str, password: str) -> User | None:
        """
        Return the active user with this email when the password matches, otherwise None.
        Unknown email, wrong password and inactive account are indistinguishable to the caller.
        """
        user = await self.repository.get_by_email(email)
        if user is None or not user.is_active:
            logger.info("user.authenticate.rejected")
            return None
        if not await asyncio.to_thread(self.hasher.verify, password, user.hashed_password):
            logger.info("user.authenticate.rejected", extra={"user_id": user.id})
            return None
        logger.info("user.authenticate.success", extra={"user_id": user.id})
        return user
