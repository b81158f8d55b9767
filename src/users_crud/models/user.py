from enum import Enum

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from users_crud.database.base import Base


class UserStatus(str, Enum):
    """
    Single-character status codes stored in `users.status`.

    The API and the database both carry the raw code ("A", "I", "T");
    the enum exists so the validator and tests share one source of truth.
    """

    ACTIVE = "A"
    INACTIVE = "I"
    TERMINATED = "T"

    @classmethod
    def codes(cls) -> frozenset[str]:
        return frozenset(member.value for member in cls)


class User(Base):
    """
    SQLAlchemy model for User.

    A user is a flat record: a server-assigned integer identity plus a set of
    mutable profile attributes that are always replaced wholesale on update.
    """
    __tablename__ = "users"

    # AUTOINCREMENT keeps SQLite from handing out a deleted max id again;
    # PostgreSQL gets a sequence-backed BIGSERIAL which never reuses values.
    __table_args__ = {"sqlite_autoincrement": True}

    # Server-generated identifier (primary key). BIGINT on PostgreSQL, but SQLite
    # only auto-assigns rowid aliases declared exactly as INTEGER.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    # Login-style handle; unique among live records. The unique index is the
    # last line of enforcement when two writers race past the repository pre-check.
    user_name: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False
    )

    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # One of UserStatus codes; membership is checked by the validator, not the DB.
    status: Mapped[str] = mapped_column(String(1), nullable=False)

    # Optional free text
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Caller-settable attributes, in API order. `id` is never among them.
    MUTABLE_FIELDS = ("user_name", "first_name", "last_name", "email", "status", "department")

    def copy_from(self, other: "User") -> None:
        """Overwrite every mutable attribute with the values held by `other`."""
        for field in self.MUTABLE_FIELDS:
            setattr(self, field, getattr(other, field))

    def __repr__(self) -> str:
        # Helpful for debugging/logging
        return f"<User(id={self.id!r}, user_name={self.user_name!r}, status={self.status!r})>"
