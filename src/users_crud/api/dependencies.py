"""
FastAPI dependencies.

The lifespan in `users_crud.main` puts the long-lived collaborators on
`app.state`; routes reach them through these functions, and tests swap them
with `app.dependency_overrides`.
"""

from fastapi import Request

from users_crud.repositories.user_repository import UserRepository
from users_crud.validators.user_validator import UserValidator, get_user_validator


def get_user_repository(request: Request) -> UserRepository:
    return request.app.state.user_repository


def get_validator() -> UserValidator:
    return get_user_validator()
