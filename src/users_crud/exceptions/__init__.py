# users_crud/
# │
# ├── exceptions/
# │   ├── __init__.py                # public re-exports
# │   ├── base.py                    # App-level errors (AlreadyExistsError, NotFoundError, ...)
# │   ├── integrity_classifier.py    # SQL-level / DB-specific error classes
# │   └── mapper.py                  # Map SQL-level / driver errors to app-level errors

from .base import (
    AppError,
    ValidationFailedError,
    RepositoryError,
    NotFoundError,
    AlreadyExistsError,
    StorageUnavailableError,
)

__all__ = [
    "AppError",
    "ValidationFailedError",
    "RepositoryError",
    "NotFoundError",
    "AlreadyExistsError",
    "StorageUnavailableError",
]
