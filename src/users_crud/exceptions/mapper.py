import re
import logging
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError

from .integrity_classifier import (
    classify_integrity_error,
    is_serialization_conflict,
    UniqueConstraintError,
    SerializationConflictError,
)
from .base import AppError, AlreadyExistsError, StorageUnavailableError

logger = logging.getLogger(__name__)

# Client-safe messages for storage failures, per repository operation.
FAILURE_MESSAGES = {
    "list": "Failed to get users",
    "get": "Failed to get user",
    "create": "Failed to create user",
    "update": "Failed to update user",
    "delete": "Failed to delete user",
}


def failure_message(operation: str) -> str:
    return FAILURE_MESSAGES.get(operation, f"Failed to {operation} user")

# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    """
    Try to extract involved column names from Postgres messages:
      - 'DETAIL:  Key (user_name)=(JohnDoe) already exists.'
    """
    if not msg:
        return None

    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


def _extract_columns_sqlite(msg: str) -> list[str] | None:
    # SQLite: 'UNIQUE constraint failed: users.user_name'
    m = re.search(r'UNIQUE constraint failed: (?P<cols>.+)$', msg, flags=re.IGNORECASE)
    if m:
        return [c.split('.')[-1].strip() for c in re.split(r',\s*', m.group("cols"))]
    return None


def extract_columns_from_integrity(exc: DBAPIError) -> list[str] | None:
    """
    Best-effort extraction of column names from the DB message (Postgres, SQLite).
    """
    orig = exc.orig
    msg = str(orig) if orig is not None else str(exc)
    return _extract_columns_postgres(msg) or _extract_columns_sqlite(msg)


# -----------------------
# Mapper
# -----------------------

def map_db_error(exc: DBAPIError, operation: str, context: dict[str, Any]) -> AppError:
    """
    Translate a driver-level error into the application taxonomy.

    - unique violation            -> AlreadyExistsError (the user_name race lost at the index)
    - serialization / deadlock    -> StorageUnavailableError (the caller may retry)
    - anything else               -> StorageUnavailableError
    The returned exception is raised by the caller `from exc`.
    """
    log_extra = {"operation": operation, **context}

    if isinstance(exc, IntegrityError):
        exc_cls, constraint_name = classify_integrity_error(exc)
    elif is_serialization_conflict(exc):
        exc_cls, constraint_name = SerializationConflictError, None
    else:
        exc_cls, constraint_name = None, None

    if exc_cls is UniqueConstraintError:
        columns = extract_columns_from_integrity(exc) or ["user_name"]
        # Expected client-level outcome: INFO, no stack trace.
        logger.info(
            "mapper.duplicate_detected",
            extra={**log_extra, "fields": columns, "constraint": constraint_name},
        )
        return AlreadyExistsError(fields=columns, constraint=constraint_name)

    if exc_cls is SerializationConflictError:
        logger.warning(
            "mapper.serialization_conflict",
            extra={**log_extra, "constraint": constraint_name},
        )
        return StorageUnavailableError(f"{failure_message(operation)}: concurrent transaction conflict")

    logger.error(
        "mapper.storage_failure",
        exc_info=exc,
        extra={
            **log_extra,
            "error_type": type(exc).__name__,
            # NOT NULL / CHECK / unknown tags only label the log record
            "classification": exc_cls.__name__ if exc_cls else None,
            "constraint": constraint_name,
        },
    )
    return StorageUnavailableError(failure_message(operation))


# -----------------------
# Async context manager to DRY error handling in repositories
# -----------------------
@asynccontextmanager
async def storage_error_handler(operation: str, **context: Any):
    """
    Usage:
        async with storage_error_handler("update", user_id=user_id):
            async with self._session_factory() as session, session.begin():
                ... check-then-write ...

    The handler sits *outside* the transaction block, so by the time it sees an
    exception the transaction has already been rolled back and the connection
    returned to the pool. It then:
      - lets application errors (NotFoundError, AlreadyExistsError, ...) through untouched;
      - maps driver errors to AlreadyExistsError / StorageUnavailableError;
      - converts any other unexpected exception into StorageUnavailableError.
    Cancellation (asyncio.CancelledError) is a BaseException and is never intercepted.
    """
    try:
        yield
    except AppError:
        raise
    except DBAPIError as exc:
        raise map_db_error(exc, operation, context) from exc
    except (SQLAlchemyError, OSError) as exc:
        # connection refused, pool timeout, ... : the store is not reachable
        logger.error(
            "mapper.storage_unreachable",
            exc_info=exc,
            extra={"operation": operation, **context, "error_type": type(exc).__name__},
        )
        raise StorageUnavailableError(failure_message(operation)) from exc
    except Exception as exc:
        # Unexpected exceptions are logged with stack trace for diagnostics.
        logger.exception("Unexpected error during %s", operation, extra={"operation": operation, **context})
        raise StorageUnavailableError(failure_message(operation)) from exc
