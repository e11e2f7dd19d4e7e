"""
Translate database failures into repository-level exceptions.

`db_error_handler` wraps every write a repository performs. Whatever goes wrong,
the session is rolled back and the caller sees exactly one of:

- DuplicateError     unique constraint hit at write time (a lost pre-check race);
                     carries the same message the pre-check would have produced
                     when the caller supplies `conflict_message`
- InvalidFieldError  NOT NULL violation
- RepositoryError    anything else, with a generic message; the original exception
                     is chained (`raise ... from exc`) and logged, never exposed
"""
import re
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .integrity_classifier import ConstraintKind, classify_integrity_error
from .base import DuplicateError, InvalidFieldError, RepositoryError

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    """
    Common Postgres messages:
      - 'null value in column "email" violates not-null constraint'
      - 'DETAIL:  Key (national_id)=(123) already exists.'
    """
    m = re.search(r'null value in column "(?P<col>[^"]+)"', msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]

    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


def _extract_columns_sqlite(msg: str) -> list[str] | None:
    # 'UNIQUE constraint failed: users.email' / 'NOT NULL constraint failed: users.email'
    m = re.search(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>[^\n]+)', msg, flags=re.IGNORECASE)
    if m:
        return [c.split('.')[-1].strip() for c in re.split(r',\s*', m.group("cols").strip())]
    return None


def _extract_columns_mysql(msg: str) -> list[str] | None:
    # "Duplicate entry 'foo' for key 'users.ix_users_email'"
    m = re.search(r"Duplicate entry .* for key '?([^']+)'?", msg, flags=re.IGNORECASE)
    if m:
        return [m.group(1)]
    return None


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the DB message (Postgres, SQLite, MySQL).
    """
    orig = exc.orig
    msg = str(orig) if orig is not None else str(exc)
    if not msg:
        return None

    for extractor in (_extract_columns_postgres, _extract_columns_sqlite, _extract_columns_mysql):
        cols = extractor(msg)
        if cols:
            return cols
    return None


# -----------------------
# Mapper
# -----------------------

def raise_mapped_integrity_error(
    exc: IntegrityError,
    model_name: str | None = None,
    conflict_message: str | None = None,
) -> None:
    """
    Map a SQLAlchemy IntegrityError to a repository-level exception and raise it.
    """
    kind, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)

    model_part = model_name or "Record"

    if kind is ConstraintKind.UNIQUE:
        # Expected client-level outcome (409), so INFO rather than ERROR.
        logger.info(
            "mapper.duplicate_detected",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        message = conflict_message or f"{model_part} already exists"
        raise DuplicateError(message, fields=columns, constraint=constraint_name) from exc

    if kind is ConstraintKind.NOT_NULL:
        logger.info(
            "mapper.not_null_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            raise InvalidFieldError(
                f"Missing required field(s): {', '.join(columns)} for {model_part}", fields=columns
            ) from exc
        raise InvalidFieldError(f"Missing required field for {model_part}") from exc

    if kind is ConstraintKind.FOREIGN_KEY:
        logger.info(
            "mapper.foreign_key_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        raise RepositoryError(
            f"{model_part} references a missing entity", fields=columns, constraint=constraint_name
        ) from exc

    if kind is ConstraintKind.CHECK:
        logger.info(
            "mapper.check_constraint_failure",
            extra={"model": model_part, "constraint": constraint_name},
        )
        raise RepositoryError(
            f"{model_part} business rule violated (check constraint).", constraint=constraint_name
        ) from exc

    logger.warning(
        "mapper.unknown_integrity_error",
        extra={"model": model_part, "constraint": constraint_name},
    )
    raise RepositoryError(f"{model_part} database integrity error.") from exc


async def safe_rollback(db: AsyncSession, model_name: str | None) -> None:
    try:
        await db.rollback()
    except Exception:
        logger.exception("Failed to rollback session", extra={"model": model_name})


# -----------------------
# Async context manager to DRY error handling in repositories
# -----------------------
@asynccontextmanager
async def db_error_handler(db: AsyncSession, model_name: str | None = None, conflict_message: str | None = None):
    """
    Usage:
        async with db_error_handler(self.db, self.model.__name__, "User with this email already exists"):
            ... DB ops that may raise IntegrityError ...
    """
    try:
        yield
    except IntegrityError as exc:
        await safe_rollback(db, model_name)
        raise_mapped_integrity_error(exc, model_name, conflict_message)
    except RepositoryError:
        # already translated further down
        await safe_rollback(db, model_name)
        raise
    except Exception as exc:
        await safe_rollback(db, model_name)
        logger.exception("Unexpected DB error for %s", model_name, extra={"model": model_name})
        raise RepositoryError(f"Failed to operate on {model_name or 'database'}") from exc
