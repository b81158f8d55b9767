"""
User repository: transactional persistence for `User` records.

`UserRepository` is the abstract capability the HTTP layer depends on.
`SQLAlchemyUserRepository` implements it on top of an `async_sessionmaker`.

Every mutating operation runs in its own transaction with the same shape:

    read (inside the transaction) -> write conditionally -> commit | roll back

`async with session.begin()` commits when the block exits normally and rolls
back on *any* exception, including the expected NotFoundError/AlreadyExistsError
branches and asyncio.CancelledError. The unique index on `users.user_name`
backs up the pre-check: a writer that loses a race at the index gets the same
AlreadyExistsError as one caught by the pre-check.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from users_crud.exceptions.base import AlreadyExistsError, NotFoundError
from users_crud.exceptions.mapper import storage_error_handler
from users_crud.models.user import User

logger = logging.getLogger(__name__)

_MODEL = User.__name__


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class UserRepository(ABC):
    """
    Storage capability for user records.

    Implementations must be safe to call from many tasks at once and must never
    retry on their own.
    """

    @abstractmethod
    async def list(self) -> Sequence[User]:
        """Return every live record."""

    @abstractmethod
    async def get(self, user_id: int) -> User:
        """Return the record with `user_id` or raise NotFoundError."""

    @abstractmethod
    async def create(self, user: User) -> User:
        """
        Insert `user` unless its user_name is taken (AlreadyExistsError).
        The input record receives the assigned id.
        """

    @abstractmethod
    async def update(self, user_id: int, user: User) -> User:
        """
        Replace every mutable field of record `user_id` with the values in `user`.
        Raises NotFoundError or AlreadyExistsError.
        """

    @abstractmethod
    async def delete(self, user_id: int) -> None:
        """Remove record `user_id` permanently, or raise NotFoundError."""


class SQLAlchemyUserRepository(UserRepository):
    """
    `UserRepository` backed by SQLAlchemy's async ORM.

    The repository holds only the session factory; the engine's connection pool
    is the one shared resource. Each call opens a short-lived session, so
    returned records are detached snapshots (expire_on_commit=False keeps
    their attributes loaded).
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Queries shared by the operations (always run inside a session)
    # ------------------------------------------------------------------

    @staticmethod
    async def _get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def _get_by_user_name(session: AsyncSession, user_name: str) -> User | None:
        result = await session.execute(select(User).where(User.user_name == user_name))
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list(self) -> Sequence[User]:
        start = time.perf_counter()

        async with storage_error_handler("list", model=_MODEL):
            async with self._session_factory() as session:
                result = await session.execute(select(User).order_by(User.id))
                users = result.scalars().all()

        logger.debug(
            "repo.list.success",
            extra={"model": _MODEL, "operation": "list", "count": len(users), "duration_ms": _elapsed_ms(start)},
        )
        return users

    async def get(self, user_id: int) -> User:
        async with storage_error_handler("get", model=_MODEL, user_id=user_id):
            async with self._session_factory() as session:
                user = await self._get_by_id(session, user_id)

        if user is None:
            logger.info("repo.get.not_found", extra={"model": _MODEL, "operation": "get", "user_id": user_id})
            raise NotFoundError()
        return user

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, user: User) -> User:
        """
        Check-then-insert in one transaction.

        Logging:
        - DEBUG: start event with the requested user_name.
        - INFO: duplicate caught by the pre-check (the index path is logged by the mapper).
        - INFO: success event with the assigned id and duration_ms.
        """
        logger.debug(
            "repo.create.start",
            extra={"model": _MODEL, "operation": "create", "user_name": user.user_name},
        )
        start = time.perf_counter()

        async with storage_error_handler("create", model=_MODEL, user_name=user.user_name):
            async with self._session_factory() as session, session.begin():
                if await self._get_by_user_name(session, user.user_name) is not None:
                    logger.info(
                        "repo.create.duplicate_precheck",
                        extra={"model": _MODEL, "operation": "create", "user_name": user.user_name},
                    )
                    raise AlreadyExistsError()

                entity = User()
                entity.copy_from(user)
                session.add(entity)
                # flush -> INSERT; the unique index rejects a concurrent twin here
                await session.flush()
                await session.refresh(entity)

        # hand the assigned identity (and any storage-normalized values) back to the caller
        user.id = entity.id
        user.copy_from(entity)

        logger.info(
            "repo.create.success",
            extra={"model": _MODEL, "operation": "create", "user_id": entity.id, "duration_ms": _elapsed_ms(start)},
        )
        return entity

    async def update(self, user_id: int, user: User) -> User:
        logger.debug(
            "repo.update.start",
            extra={"model": _MODEL, "operation": "update", "user_id": user_id, "user_name": user.user_name},
        )
        start = time.perf_counter()

        async with storage_error_handler("update", model=_MODEL, user_id=user_id, user_name=user.user_name):
            async with self._session_factory() as session, session.begin():
                target = await self._get_by_id(session, user_id)
                if target is None:
                    logger.info(
                        "repo.update.not_found",
                        extra={"model": _MODEL, "operation": "update", "user_id": user_id},
                    )
                    raise NotFoundError()

                holder = await self._get_by_user_name(session, user.user_name)
                # keeping one's own name is not a conflict
                if holder is not None and holder.id != target.id:
                    logger.info(
                        "repo.update.duplicate_precheck",
                        extra={
                            "model": _MODEL,
                            "operation": "update",
                            "user_id": user_id,
                            "user_name": user.user_name,
                            "holder_id": holder.id,
                        },
                    )
                    raise AlreadyExistsError()

                target.copy_from(user)
                try:
                    await session.flush()
                except StaleDataError:
                    # deleted by a concurrent transaction after the read: UPDATE matched no row
                    logger.info(
                        "repo.update.not_found",
                        extra={"model": _MODEL, "operation": "update", "user_id": user_id, "stage": "flush"},
                    )
                    raise NotFoundError() from None
                await session.refresh(target)

        user.id = target.id
        user.copy_from(target)

        logger.info(
            "repo.update.success",
            extra={"model": _MODEL, "operation": "update", "user_id": user_id, "duration_ms": _elapsed_ms(start)},
        )
        return target

    async def delete(self, user_id: int) -> None:
        start = time.perf_counter()

        async with storage_error_handler("delete", model=_MODEL, user_id=user_id):
            async with self._session_factory() as session, session.begin():
                target = await self._get_by_id(session, user_id)
                if target is None:
                    logger.info(
                        "repo.delete.not_found",
                        extra={"model": _MODEL, "operation": "delete", "user_id": user_id},
                    )
                    raise NotFoundError()

                await session.delete(target)

        logger.info(
            "repo.delete.success",
            extra={"model": _MODEL, "operation": "delete", "user_id": user_id, "duration_ms": _elapsed_ms(start)},
        )
