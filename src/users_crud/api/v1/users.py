"""User CRUD endpoints (`/api/v1/users`)."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status

from users_crud.api.dependencies import get_user_repository, get_validator
from users_crud.models.user import User
from users_crud.repositories.user_repository import UserRepository
from users_crud.schemas.user import USER_BODY_EXAMPLE, UserRead
from users_crud.validators.user_validator import UserValidator

router = APIRouter(prefix="/users", tags=["Users"])

# Raw JSON object; field rules are applied by UserValidator so that all
# violations are reported together.
UserBody = Body(..., examples=[USER_BODY_EXAMPLE])


def _to_record(validator: UserValidator, payload: dict[str, Any]) -> User:
    data = validator.validate_or_raise(payload)
    return User(**data.model_dump())


@router.get("", response_model=list[UserRead])
async def list_users(repo: UserRepository = Depends(get_user_repository)) -> list[User]:
    """List all users."""
    return list(await repo.list())


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: int, repo: UserRepository = Depends(get_user_repository)) -> User:
    return await repo.get(user_id)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=UserRead)
async def create_user(
    payload: dict[str, Any] = UserBody,
    repo: UserRepository = Depends(get_user_repository),
    validator: UserValidator = Depends(get_validator),
) -> User:
    """Create a user; 409 when the user_name is taken."""
    user = _to_record(validator, payload)
    await repo.create(user)
    return user


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    payload: dict[str, Any] = UserBody,
    repo: UserRepository = Depends(get_user_repository),
    validator: UserValidator = Depends(get_validator),
) -> User:
    """Replace every mutable field of a user."""
    user = _to_record(validator, payload)
    return await repo.update(user_id, user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, repo: UserRepository = Depends(get_user_repository)) -> Response:
    await repo.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
