from users_crud.exceptions.base import (
    AlreadyExistsError,
    AppError,
    NotFoundError,
    RepositoryError,
    StorageUnavailableError,
    ValidationFailedError,
)
from users_crud.validators.user_validator import Violation, ViolationReason


def test_taxonomy_hierarchy():
    assert issubclass(ValidationFailedError, AppError)
    assert not issubclass(ValidationFailedError, RepositoryError)
    for cls in (AlreadyExistsError, NotFoundError, StorageUnavailableError):
        assert issubclass(cls, RepositoryError)


def test_default_messages_and_codes():
    assert (AlreadyExistsError().message, AlreadyExistsError().error_code) == ("username already in use", "duplicate")
    assert (NotFoundError().message, NotFoundError().error_code) == ("user does not exist", "not_found")
    assert StorageUnavailableError().error_code == "storage_unavailable"


def test_payload_shape():
    err = AlreadyExistsError(constraint="ix_users_user_name")

    assert err.to_payload() == {
        "detail": "username already in use",
        "code": "duplicate",
        "fields": ["user_name"],
    }
    # constraint is kept for logs
    assert "constraint: ix_users_user_name" in str(err)


def test_validation_failed_message_lists_violations():
    err = ValidationFailedError(
        [Violation("user_name", ViolationReason.MISSING), Violation("email", ViolationReason.INVALID)]
    )

    assert err.message == "'user_name' is missing\n'email' is invalid"
    assert err.fields == ["user_name", "email"]
    assert err.to_payload()["code"] == "invalid_input"
