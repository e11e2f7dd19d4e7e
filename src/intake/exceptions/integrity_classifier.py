"""
Work out which constraint an IntegrityError tripped.

Postgres drivers report a SQLSTATE (and usually the constraint name), which is
authoritative. SQLite and other backends only give a message, so those are matched
on keywords. mapper.py turns the resulting ConstraintKind into a repository error.
"""
import logging
from enum import Enum

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class ConstraintKind(str, Enum):
    UNIQUE = "unique"
    NOT_NULL = "not_null"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"
    UNKNOWN = "unknown"


# https://www.postgresql.org/docs/current/errcodes-appendix.html
SQLSTATE_KINDS = {
    "23505": ConstraintKind.UNIQUE,
    "23502": ConstraintKind.NOT_NULL,
    "23503": ConstraintKind.FOREIGN_KEY,
    "23514": ConstraintKind.CHECK,
}

# checked in order, first hit wins
MESSAGE_KEYWORDS = (
    (ConstraintKind.UNIQUE, ("unique constraint", "unique failed", "unique violation", "duplicate")),
    (ConstraintKind.NOT_NULL, ("not null", "null value in column")),
    (ConstraintKind.FOREIGN_KEY, ("foreign key", "is not present in table")),
    (ConstraintKind.CHECK, ("check constraint", "check failed")),
)


def _sqlstate(orig) -> str | None:
    # psycopg exposes `pgcode`, asyncpg (through SQLAlchemy's adapter) exposes `sqlstate`
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _constraint_name(orig) -> str | None:
    diag = getattr(orig, "diag", None)
    return getattr(diag, "constraint_name", None) or getattr(orig, "constraint_name", None)


def _kind_from_message(msg: str) -> ConstraintKind:
    lowered = msg.lower()
    for kind, keywords in MESSAGE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return kind
    logger.warning("integrity.unrecognized_message", extra={"message_snippet": msg[:200]})
    return ConstraintKind.UNKNOWN


def classify_integrity_error(exc: IntegrityError) -> tuple[ConstraintKind, str | None]:
    """
    Returns:
        (kind, constraint name); the name is only known for Postgres errors.
    """
    orig = exc.orig

    code = _sqlstate(orig)
    if code:
        name = _constraint_name(orig)
        kind = SQLSTATE_KINDS.get(code)
        if kind is None:
            logger.warning("integrity.unrecognized_sqlstate", extra={"sqlstate": code, "constraint": name})
            return ConstraintKind.UNKNOWN, name
        logger.debug("integrity.classified", extra={"sqlstate": code, "constraint": name})
        return kind, name

    return _kind_from_message(str(orig) if orig is not None else str(exc)), None
