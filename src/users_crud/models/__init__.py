r"""
Centralized access to the database models.

Importing this package registers every model with `Base.metadata`, which is what
`init_db()` and the test fixtures rely on when they call `create_all`.

Example:

    from users_crud.models import User, UserStatus
"""

from .user import User, UserStatus

__all__ = [
    "User",
    "UserStatus",
]
