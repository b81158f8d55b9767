"""
Driver-error classification.

Turns a SQLAlchemy `DBAPIError` into one of the tag classes below, plus the
constraint name when the driver reports it. The tags never leave the
repository layer: `mapper.map_db_error` converts them into the application
taxonomy (`AlreadyExistsError` / `StorageUnavailableError`).

PostgreSQL errors are classified by SQLSTATE; everything else (SQLite) by
keywords in the driver message. Only the unique and serialization tags change
the outcome; NOT NULL, CHECK and unknown tags end up as StorageUnavailableError
and label the `mapper.storage_failure` log record (`classification`).
"""

import logging
from typing import Type

from sqlalchemy.exc import DBAPIError

from .base import RepositoryError

logger = logging.getLogger(__name__)


class ConstraintViolationError(RepositoryError):
    """Base tag for classified driver errors."""


class UniqueConstraintError(ConstraintViolationError):
    """Duplicate value in a unique index."""


class NotNullConstraintError(ConstraintViolationError):
    """NULL written to a NOT NULL column."""


class CheckConstraintError(ConstraintViolationError):
    """CHECK constraint rejected the row."""


class SerializationConflictError(ConstraintViolationError):
    """Serialization failure or deadlock between concurrent transactions."""


class UnknownIntegrityError(ConstraintViolationError):
    """Driver error the rules below do not recognise."""


ErrorTag = Type[ConstraintViolationError]

# SQLSTATE -> tag, https://www.postgresql.org/docs/current/errcodes-appendix.html
SQLSTATE_TAGS: dict[str, ErrorTag] = {
    "23505": UniqueConstraintError,
    "23502": NotNullConstraintError,
    "23514": CheckConstraintError,
    "40001": SerializationConflictError,
    "40P01": SerializationConflictError,
}

# Checked in order against the lower-cased driver message.
MESSAGE_TAGS: tuple[tuple[tuple[str, ...], ErrorTag], ...] = (
    (("unique constraint", "unique failed", "unique violation", "duplicate"), UniqueConstraintError),
    (("not null constraint", "null value in column"), NotNullConstraintError),
    (("check constraint", "check failed"), CheckConstraintError),
    (("could not serialize access", "deadlock detected"), SerializationConflictError),
)


def _sqlstate(orig) -> str | None:
    # psycopg2 and the asyncpg adapter expose `pgcode`, psycopg 3 exposes `sqlstate`
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _constraint_name(orig) -> str | None:
    diag = getattr(orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None):
        return diag.constraint_name
    # asyncpg keeps the native exception as the cause of the adapted one
    return getattr(getattr(orig, "__cause__", None), "constraint_name", None)


def _message_of(exc: DBAPIError) -> str:
    return str(exc.orig) if exc.orig is not None else str(exc)


def _tag_from_message(msg: str) -> ErrorTag | None:
    normalized = msg.lower()
    for keywords, tag in MESSAGE_TAGS:
        if any(keyword in normalized for keyword in keywords):
            return tag
    return None


def classify_integrity_error(exc: DBAPIError) -> tuple[ErrorTag, str | None]:
    """
    Return `(tag, constraint_name)` for a driver error, usually an IntegrityError.

    Unrecognised SQLSTATEs and messages are tagged `UnknownIntegrityError` and
    logged at WARNING; the raw driver text goes to DEBUG only.
    """
    orig = exc.orig
    sqlstate = _sqlstate(orig)

    if sqlstate:
        constraint_name = _constraint_name(orig)
        tag = SQLSTATE_TAGS.get(sqlstate)
        if tag is None:
            logger.warning(
                "classifier.unknown_sqlstate",
                extra={"pgcode": sqlstate, "constraint_name": constraint_name},
            )
            logger.debug("classifier.raw_error", extra={"orig_repr": repr(orig)})
            return UnknownIntegrityError, constraint_name
        logger.debug("classifier.sqlstate", extra={"pgcode": sqlstate, "constraint_name": constraint_name})
        return tag, constraint_name

    msg = _message_of(exc)
    tag = _tag_from_message(msg)
    if tag is None:
        logger.warning("classifier.unknown_message", extra={"message_snippet": msg[:200]})
        return UnknownIntegrityError, None
    return tag, None


def is_serialization_conflict(exc: DBAPIError) -> bool:
    """
    True for serialization failures and deadlocks. Drivers raise these as
    OperationalError (or a driver-specific subclass), not IntegrityError.
    """
    sqlstate = _sqlstate(exc.orig)
    if sqlstate:
        return SQLSTATE_TAGS.get(sqlstate) is SerializationConflictError
    return _tag_from_message(_message_of(exc)) is SerializationConflictError
