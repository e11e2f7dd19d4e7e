"""
Application service: the write workflow bound to the `applications` table.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from intake.core.result import Envelope
from intake.models.application import Application, ApplicationStatus, RegistrationType
from intake.repositories.application_repository import ApplicationRepository
from intake.schemas.application import ApplicationCreate, ApplicationRead, ApplicationUpdate
from .write_workflow import ConflictCheckedWriteWorkflow, ResourceSpec

logger = logging.getLogger(__name__)

APPLICATION_RESOURCE = ResourceSpec(
    name="Application",
    unique_field="national_id",
    unique_label="national ID",
    search_fields=ApplicationRepository.SEARCH_FIELDS,
    filter_field="status",
    filter_type=ApplicationStatus,
    recency_field=ApplicationRepository.RECENCY_FIELD,
)


def _plain_registration_type(fields: dict) -> dict:
    # the column is plain text, store the enum's value
    value = fields.get("registration_type")
    if isinstance(value, RegistrationType):
        fields["registration_type"] = value.value
    return fields


class ApplicationService(ConflictCheckedWriteWorkflow[Application]):

    def __init__(self, db: AsyncSession, max_page_size: int = 1000):
        super().__init__(ApplicationRepository(db), APPLICATION_RESOURCE, max_page_size=max_page_size)

    def normalize(self, fields: dict) -> dict:
        if isinstance(fields.get("national_id"), str):
            fields["national_id"] = fields["national_id"].strip()
        return _plain_registration_type(fields)

    async def prepare_create(self, fields: dict, **context):
        if fields.get("status") is None:
            fields["status"] = ApplicationStatus.PENDING
        return fields, []

    def serialize(self, entity: Application) -> ApplicationRead:
        return ApplicationRead.model_validate(entity)

    # -----------------------------------------------------------------------------------------------------------------
    # Schema-typed entry points used by the API layer
    # -----------------------------------------------------------------------------------------------------------------

    async def create_application(self, data: ApplicationCreate) -> Envelope:
        return await self.create(data.model_dump())

    async def update_application(self, application_id: int, data: ApplicationUpdate) -> Envelope:
        return await self.update(application_id, data.model_dump(exclude_unset=True))

    async def list_applications(
        self,
        page: int | None = 1,
        page_size: int | None = None,
        search: str | None = None,
        status: str | None = None,
    ) -> Envelope:
        return await self.find_all(page=page, page_size=page_size, search=search, filter_value=status)
