"""
Conflict-checked write workflow shared by every resource.

Create:
    1. validate the input (resource hook)
    2. pre-check: is the uniqueness key already taken?           -> Conflict, nothing written
    3. prepare the stored values (resource hook, may hash/upload) -> returns compensations
    4. insert + commit; a unique violation raised by the database -> the same Conflict message
Update:
    existence check -> NotFound; uniqueness re-check only when the key actually changes
    (the record itself excluded); partial merge; write + commit as above.

The pre-check is advisory, the database constraint is authoritative: a lost race
surfaces as `DuplicateError(conflict_message)` from the repository and is reported
exactly like a pre-check hit.

Every public method returns an envelope (intake.core.result). Exceptions stop here:
repository errors are mapped to their failure kind, anything else is logged with its
stack trace and reported as a generic Internal failure.
"""
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Awaitable, Callable, Generic, Sequence, Type

from intake.core.result import (
    Envelope,
    Failure,
    conflict,
    internal_error,
    not_found,
    success,
    validation_error,
)
from intake.exceptions.base import DuplicateError, InvalidFieldError, NotFoundError
from intake.exceptions.mapper import db_error_handler, safe_rollback
from intake.repositories.base_repository import BaseRepository, ModelType
from .pagination import Pagination

logger = logging.getLogger(__name__)

Compensation = Callable[[], Awaitable[None]]

# values accepted as "no categorical filter"
NO_FILTER = "all"


@dataclass(frozen=True)
class ResourceSpec:
    name: str                                 # "Application"
    unique_field: str                         # "national_id"
    unique_label: str                         # "national ID"
    search_fields: Sequence[str] = ()
    filter_field: str | None = None           # "status"
    filter_type: Type[Enum] | None = None     # ApplicationStatus
    recency_field: str = "created_at"

    @property
    def conflict_message(self) -> str:
        return f"{self.name} with this {self.unique_label} already exists"

    @property
    def not_found_message(self) -> str:
        return f"{self.name} not found"

    def message(self, action: str) -> str:
        return f"{self.name} {action} successfully"


class ConflictCheckedWriteWorkflow(Generic[ModelType]):
    """
    Base class for resource services.

    Subclasses pass their repository and ResourceSpec, and may override the hooks:
        normalize(fields)                      -> fields        (before everything, e.g. lower-case email)
        validate_create / validate_update      -> Failure|None  (before the pre-check)
        prepare_create / prepare_update        -> (values, compensations)  (after the pre-check)
        serialize(entity)                      -> data placed in the envelope
        failure_for(exc, action)               -> Failure|None  (extra exception mappings)
    """

    def __init__(self, repository: BaseRepository[ModelType], resource: ResourceSpec, max_page_size: int = 1000):
        self.repository = repository
        self.resource = resource
        self.max_page_size = max_page_size

    @property
    def db(self):
        return self.repository.db

    # =================================================================================================================
    # Hooks
    # =================================================================================================================

    def normalize(self, fields: dict) -> dict:
        return fields

    async def validate_create(self, fields: dict, **context) -> Failure | None:
        return None

    async def validate_update(self, existing: ModelType, patch: dict, **context) -> Failure | None:
        return None

    async def prepare_create(self, fields: dict, **context) -> tuple[dict, list[Compensation]]:
        return fields, []

    async def prepare_update(self, existing: ModelType, patch: dict, **context) -> tuple[dict, list[Compensation]]:
        return patch, []

    def serialize(self, entity: ModelType) -> Any:
        return entity

    def failure_for(self, exc: Exception, action: str) -> Failure | None:
        return None

    # =================================================================================================================
    # Write operations
    # =================================================================================================================

    async def create(self, fields: dict, **context) -> Envelope:
        compensations: list[Compensation] = []
        try:
            fields = self.normalize(dict(fields))

            failure = await self.validate_create(fields, **context)
            if failure is not None:
                return failure

            key = fields.get(self.resource.unique_field)
            if key is not None and await self._key_taken(key, exclude_id=None):
                logger.info("workflow.create.conflict", extra={"resource": self.resource.name, "field": self.resource.unique_field})
                return conflict(self.resource.conflict_message)

            values, compensations = await self.prepare_create(fields, **context)
            entity = await self.repository.create(conflict_message=self.resource.conflict_message, **values)
            await self._commit()

            logger.info("workflow.create.success", extra={"resource": self.resource.name, "id": entity.id})
            return success(self.resource.message("created"), self.serialize(entity), status_code=201)

        except Exception as exc:
            return await self._fail(exc, "create", compensations)

    async def update(self, entity_id: int, patch: dict, **context) -> Envelope:
        compensations: list[Compensation] = []
        try:
            existing = await self.repository.get_by_id(entity_id)
            if existing is None:
                return not_found(self.resource.not_found_message)

            patch = self.normalize(dict(patch))

            failure = await self.validate_update(existing, patch, **context)
            if failure is not None:
                return failure

            new_key = patch.get(self.resource.unique_field)
            current_key = getattr(existing, self.resource.unique_field)
            if new_key is not None and new_key != current_key and await self._key_taken(new_key, exclude_id=entity_id):
                logger.info("workflow.update.conflict", extra={"resource": self.resource.name, "id": entity_id})
                return conflict(self.resource.conflict_message)

            values, compensations = await self.prepare_update(existing, patch, **context)
            entity = await self.repository.update(entity_id, conflict_message=self.resource.conflict_message, **values)
            if entity is None:
                # removed between the existence check and the write
                raise NotFoundError(self.resource.not_found_message)
            await self._commit()

            logger.info(
                "workflow.update.success",
                extra={"resource": self.resource.name, "id": entity_id, "updated_keys": sorted(values)},
            )
            return success(self.resource.message("updated"), self.serialize(entity))

        except Exception as exc:
            return await self._fail(exc, "update", compensations)

    async def delete(self, entity_id: int) -> Envelope:
        try:
            if not await self.repository.delete(entity_id):
                return not_found(self.resource.not_found_message)
            await self._commit()
            logger.info("workflow.delete.success", extra={"resource": self.resource.name, "id": entity_id})
            return success(self.resource.message("deleted"))
        except Exception as exc:
            return await self._fail(exc, "delete", [])

    # =================================================================================================================
    # Read operations
    # =================================================================================================================

    async def find_one(self, entity_id: int) -> Envelope:
        try:
            entity = await self.repository.get_by_id(entity_id)
            if entity is None:
                return not_found(self.resource.not_found_message)
            return success(self.resource.message("retrieved"), self.serialize(entity))
        except Exception as exc:
            return await self._fail(exc, "retrieve", [])

    async def find_all(
        self,
        page: int | None = 1,
        page_size: int | None = None,
        search: str | None = None,
        filter_value: str | None = None,
    ) -> Envelope:
        """
        One page of records, newest first.

        `search` is a case-insensitive substring match over the resource's search fields;
        `filter_value` is an exact match on its categorical field ("All" or None: no filter).
        """
        try:
            pagination = Pagination.clamp(page, page_size if page_size is not None else self.max_page_size, self.max_page_size)

            filters = {}
            if self.resource.filter_field and filter_value is not None and filter_value.strip().lower() != NO_FILTER:
                coerced = self._coerce_filter(filter_value.strip())
                if isinstance(coerced, Failure):
                    return coerced
                filters[self.resource.filter_field] = coerced

            items, total = await self.repository.list_page(
                search=search,
                search_fields=self.resource.search_fields,
                filters=filters,
                order_by=self.resource.recency_field,
                descending=True,
                offset=pagination.offset,
                limit=pagination.page_size,
            )
            page_data = pagination.to_page([self.serialize(item) for item in items], total)
            return success(f"{self.resource.name}s retrieved successfully", page_data)

        except Exception as exc:
            return await self._fail(exc, "retrieve", [])

    # =================================================================================================================
    # Internals
    # =================================================================================================================

    async def _key_taken(self, value: Any, exclude_id: int | None) -> bool:
        found = await self.repository.find_by_field_excluding(self.resource.unique_field, value, exclude_id)
        return found is not None

    def _coerce_filter(self, value: str) -> Any:
        enum_type = self.resource.filter_type
        if enum_type is None:
            return value
        try:
            return enum_type(value.upper())
        except ValueError:
            allowed = ", ".join(member.value for member in enum_type)
            return validation_error(
                f"Invalid {self.resource.filter_field} filter: {value}. Valid values are: All, {allowed}",
                details=[{"field": self.resource.filter_field, "message": f"must be one of All, {allowed}"}],
            )

    async def _commit(self) -> None:
        async with db_error_handler(self.db, self.resource.name, self.resource.conflict_message):
            await self.db.commit()

    async def _compensate(self, compensations: list[Compensation]) -> None:
        for undo in compensations:
            try:
                await undo()
            except Exception:
                # the operation already failed; report and keep undoing the rest
                logger.exception("workflow.compensation_failed", extra={"resource": self.resource.name})

    async def _fail(self, exc: Exception, action: str, compensations: list[Compensation]) -> Failure:
        await safe_rollback(self.db, self.resource.name)
        await self._compensate(compensations)

        if isinstance(exc, DuplicateError):
            logger.info(f"workflow.{action}.conflict", extra={"resource": self.resource.name, "source": "constraint"})
            return conflict(self.resource.conflict_message)
        if isinstance(exc, NotFoundError):
            return not_found(self.resource.not_found_message)
        if isinstance(exc, InvalidFieldError):
            return validation_error(exc.message, exc.field_details())

        failure = self.failure_for(exc, action)
        if failure is not None:
            return failure

        logger.exception(f"workflow.{action}.failed", exc_info=exc, extra={"resource": self.resource.name})
        return internal_error(f"Failed to {action} {self.resource.name.lower()}")
