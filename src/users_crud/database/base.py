"""
Declarative base shared by every ORM model in users_crud.

Constraint and index names are pinned with a naming convention so the
integrity-error mapper can recognise them in driver messages
(e.g. `ix_users_user_name` for the unique index on `users.user_name`).
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


Base.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s"
}
