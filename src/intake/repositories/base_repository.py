"""
Base repository class providing common database operations.

This class is the storage port of the write workflow: it looks records up by id or
by an arbitrary field, inserts, updates, deletes and lists them, and reports every
failure as a repository-level exception (see intake.exceptions).

Repositories only `flush()`; committing is left to the caller (the workflow), so a
write and its follow-up work can succeed or fail together.
"""
from intake.exceptions.base import (
    RepositoryError,
    InvalidFieldError
)

from intake.exceptions.mapper import db_error_handler
from intake.validators.model_validators import (
    find_unknown_model_kwargs,
    get_non_nullable_columns,
    get_required_columns,
    get_searchable_columns,
)

import time
from typing import Any, Generic, Sequence, Type, TypeVar
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, func, or_, select
import logging

from intake.database.base import Base

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    # LIKE wildcards in user input are matched literally
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository providing common CRUD operations.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Args:
            model: The SQLAlchemy model class (e.g. `User`, not `User()`)
            db: The async database session
        """
        self.model = model
        self.db = db

    @property
    def model_name(self) -> str:
        return self.model.__name__

    # =================================================================================================================
    # Create
    # =================================================================================================================

    async def create(self, *, conflict_message: str | None = None, **kwargs) -> ModelType:
        """
        Insert a new entity and return it with DB-generated fields (id, timestamps) loaded.

        Raises:
            InvalidFieldError: unknown fields, or required fields missing/None
            DuplicateError: unique constraint violated at write time; the message is
                `conflict_message` when given
            RepositoryError: any other database failure
        """
        logger.debug(
            "repo.create.start",
            extra={"model": self.model_name, "provided_keys": sorted(kwargs.keys())},
        )

        unknown = find_unknown_model_kwargs(self.model, kwargs)
        if unknown:
            logger.info(
                "repo.create.invalid_fields",
                extra={"model": self.model_name, "invalid_fields": sorted(unknown)},
            )
            raise InvalidFieldError(f"Unknown field(s) for {self.model_name}: {', '.join(sorted(unknown))}", fields=sorted(unknown))

        missing = [c for c in get_required_columns(self.model) if kwargs.get(c) is None]
        if missing:
            logger.info(
                "repo.create.missing_required",
                extra={"model": self.model_name, "missing_fields": missing},
            )
            raise InvalidFieldError(f"Missing required field(s): {', '.join(missing)} for {self.model_name}", fields=missing)

        start = time.perf_counter()
        async with db_error_handler(self.db, self.model_name, conflict_message):
            entity = self.model(**kwargs)
            self.db.add(entity)
            await self.db.flush()
            await self.db.refresh(entity)

        logger.info(
            "repo.create.success",
            extra={
                "model": self.model_name,
                "id": getattr(entity, "id", None),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

    # =================================================================================================================
    # Read (single entity)
    # =================================================================================================================

    async def get_by_id(self, entity_id: int) -> ModelType | None:
        """
        Return the entity with this primary key, or None.

        Raises:
            RepositoryError: If the query fails.
        """
        try:
            result = await self.db.execute(
                select(self.model).where(self.model.id == entity_id)
            )
            entity = result.scalar_one_or_none()
            logger.debug(f"Retrieved {self.model_name} by ID: {entity_id} (found={entity is not None})")
            return entity
        except Exception as e:
            logger.exception(f"Error retrieving {self.model_name} by ID {entity_id}")
            raise RepositoryError(f"Failed to retrieve {self.model_name}") from e

    async def find_by_field(self, field: str, value: Any) -> ModelType | None:
        """
        Find a single entity by any field (typically a unique one such as `email`).
        """
        return await self.find_by_field_excluding(field, value, exclude_id=None)

    async def find_by_field_excluding(self, field: str, value: Any, exclude_id: int | None) -> ModelType | None:
        """
        Find an entity whose `field` equals `value`, ignoring the entity `exclude_id`.

        This is the uniqueness pre-check: on update the record being edited must not
        count as its own conflict.
        """
        if not hasattr(self.model, field):
            raise RepositoryError(f"{self.model_name} has no field '{field}'")

        try:
            query = select(self.model).where(getattr(self.model, field) == value)
            if exclude_id is not None:
                query = query.where(self.model.id != exclude_id)
            result = await self.db.execute(query.limit(1))
            entity = result.scalars().first()
            # log the field name only, the value may be personal data
            logger.debug(f"Looked up {self.model_name} by {field} (found={entity is not None})")
            return entity
        except Exception as e:
            logger.exception(f"Error finding {self.model_name} by {field}")
            raise RepositoryError(f"Failed to find {self.model_name}") from e

    # =================================================================================================================
    # Read (multiple entities)
    # =================================================================================================================

    def _build_conditions(
        self,
        search: str | None,
        search_fields: Sequence[str],
        filters: dict[str, Any] | None,
    ) -> list:
        """
        WHERE clause for listings:
            (f1 ILIKE %term% OR f2 ILIKE %term% ...) AND s1 = v1 AND s2 = v2 ...
        Blank search terms and None filter values are ignored.
        """
        conditions = []

        for field, value in (filters or {}).items():
            if value is None:
                continue
            if not hasattr(self.model, field):
                raise RepositoryError(f"{self.model_name} has no field '{field}'")
            conditions.append(getattr(self.model, field) == value)

        term = (search or "").strip()
        if term:
            pattern = f"%{_escape_like(term)}%"
            columns = get_searchable_columns(self.model, search_fields)
            if columns:
                conditions.append(or_(*(col.ilike(pattern, escape="\\") for col in columns)))

        return conditions

    async def list_page(
        self,
        *,
        search: str | None = None,
        search_fields: Sequence[str] = (),
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = True,
        offset: int = 0,
        limit: int = 100,
    ) -> tuple[list[ModelType], int]:
        """
        One page of entities matching the search/filter predicate, plus the total
        number of matches (for page counts).

        Ordering is by `order_by` (default `created_at` when the model has it), with
        `id` as a tie-breaker so pages are stable when timestamps collide.
        """
        try:
            conditions = self._build_conditions(search, search_fields, filters)
            where = and_(*conditions) if conditions else None

            query = select(self.model)
            count_query = select(func.count(self.model.id))
            if where is not None:
                query = query.where(where)
                count_query = count_query.where(where)

            order_field = order_by if order_by and hasattr(self.model, order_by) else None
            if order_field is None and hasattr(self.model, "created_at"):
                order_field = "created_at"
            if order_by and order_field != order_by:
                logger.warning(f"Ignored invalid 'order_by' field: '{order_by}' does not exist on {self.model_name}")

            if order_field:
                column = getattr(self.model, order_field)
                tie_breaker = self.model.id
                query = query.order_by(
                    column.desc() if descending else column.asc(),
                    tie_breaker.desc() if descending else tie_breaker.asc(),
                )

            query = query.offset(offset).limit(limit)

            total = (await self.db.execute(count_query)).scalar() or 0
            items = list((await self.db.execute(query)).scalars().all())

            logger.debug(
                "repo.list_page",
                extra={"model": self.model_name, "returned": len(items), "total": total, "offset": offset, "limit": limit},
            )
            return items, total

        except RepositoryError:
            raise
        except Exception as e:
            logger.exception(f"Error listing {self.model_name} entities")
            raise RepositoryError(f"Failed to retrieve {self.model_name} entities") from e

    async def count(self, **filters: Any) -> int:
        """
        Count entities with optional equality filters (unknown fields and None values are ignored).
        """
        try:
            query = select(func.count(self.model.id))
            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    query = query.where(getattr(self.model, field) == value)
            result = await self.db.execute(query)
            return result.scalar() or 0
        except Exception as e:
            logger.exception(f"Error counting {self.model_name}")
            raise RepositoryError(f"Failed to count {self.model_name} entities") from e

    # =================================================================================================================
    # Update
    # =================================================================================================================

    async def update(self, entity_id: int, *, conflict_message: str | None = None, **kwargs) -> ModelType | None:
        """
        Partially update an entity.

        Every key present in `kwargs` is applied, None included (it clears a nullable
        column); every other column keeps its current value. Returns the refreshed
        entity, or None when no entity has this id.

        Raises:
            InvalidFieldError: unknown fields, or None for a NOT NULL column
            DuplicateError: unique constraint violated at write time
            RepositoryError: any other database failure
        """
        unknown = find_unknown_model_kwargs(self.model, kwargs)
        if unknown:
            raise InvalidFieldError(f"Unknown field(s) for {self.model_name}: {', '.join(sorted(unknown))}", fields=sorted(unknown))

        nulled = [k for k in get_non_nullable_columns(self.model) if k in kwargs and kwargs[k] is None]
        if nulled:
            raise InvalidFieldError(f"Field(s) cannot be null: {', '.join(nulled)} for {self.model_name}", fields=nulled)

        update_data = dict(kwargs)

        entity = await self.get_by_id(entity_id)
        if entity is None:
            logger.warning(f"{self.model_name} with ID {entity_id} not found for update")
            return None

        if not update_data:
            logger.debug(f"No changes supplied for {self.model_name} {entity_id}")
            return entity

        async with db_error_handler(self.db, self.model_name, conflict_message):
            for field, value in update_data.items():
                setattr(entity, field, value)
            await self.db.flush()
            # reload server-side values such as updated_at
            await self.db.refresh(entity)

        logger.info(
            "repo.update.success",
            extra={"model": self.model_name, "id": entity_id, "updated_keys": sorted(update_data)},
        )
        return entity

    # =================================================================================================================
    # Delete
    # =================================================================================================================

    async def delete(self, entity_id: int) -> bool:
        """
        Delete an entity by its ID.

        Returns:
            True if the entity was deleted, False if it did not exist
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            logger.warning(f"{self.model_name} with ID {entity_id} not found for deletion")
            return False

        async with db_error_handler(self.db, self.model_name):
            await self.db.delete(entity)
            await self.db.flush()

        logger.info("repo.delete.success", extra={"model": self.model_name, "id": entity_id})
        return True
