"""
Field-level validation for user records.

The rule set is a pydantic model (`UserPayload`) that is built once at import
time. `UserValidator` turns pydantic's error list into the short, ordered list
of `Violation`s the rest of the application deals with:

    'user_name' is missing
    'status' is invalid

A field is *missing* when its required constraint fails on an empty value
(key absent, null, or ""). Any other failure on that field is *invalid*.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Annotated, Any, Sequence

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints, ValidationError
from pydantic_core import PydanticCustomError

from users_crud.exceptions.base import ValidationFailedError
from users_crud.models.user import User, UserStatus

logger = logging.getLogger(__name__)


class ViolationReason(str, Enum):
    MISSING = "missing"
    INVALID = "invalid"


@dataclass(frozen=True)
class Violation:
    field: str
    reason: ViolationReason

    def __str__(self) -> str:
        return f"'{self.field}' is {self.reason.value}"


# =================================================================================================================
# Custom rules
# =================================================================================================================
# Both run only after the string constraints passed, i.e. on a non-empty value.

def _check_email(value: str) -> str:
    # bare addresses only: display-name forms like "John <j@x.com>" are rejected
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise PydanticCustomError(
            "email_syntax", "value is not a valid email address: {reason}", {"reason": str(exc)}
        ) from None
    return value


def _check_status(value: str) -> str:
    if value not in UserStatus.codes():
        raise PydanticCustomError(
            "status_enum",
            "status must be one of {allowed}",
            {"allowed": ", ".join(sorted(UserStatus.codes()))},
        )
    return value


# =================================================================================================================
# Rule set
# =================================================================================================================

UserName = Annotated[str, StringConstraints(min_length=1, max_length=50)]
Name = Annotated[str, StringConstraints(min_length=1, max_length=255)]
Email = Annotated[str, StringConstraints(min_length=1, max_length=255), AfterValidator(_check_email)]
Status = Annotated[str, StringConstraints(min_length=1), AfterValidator(_check_status)]
Department = Annotated[str, StringConstraints(max_length=255)] | None


class UserPayload(BaseModel):
    """A candidate user record that passed every field rule."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    user_name: UserName
    first_name: Name
    last_name: Name
    email: Email
    status: Status
    department: Department = None


_FIELD_ORDER = {name: index for index, name in enumerate(User.MUTABLE_FIELDS)}


def _reason_for(error: Mapping[str, Any]) -> ViolationReason:
    if error["type"] == "missing" or error.get("input") in (None, ""):
        return ViolationReason.MISSING
    return ViolationReason.INVALID


def format_violations(violations: Sequence[Violation]) -> str:
    """Render violations one per line, in the order given."""
    return "\n".join(str(v) for v in violations)


class UserValidator:
    """
    Stateless validator over the shared `UserPayload` rule set.

    Obtain the process-wide instance through `get_user_validator()`; nothing is
    registered or compiled per call, so one instance is safe to share across tasks.
    """

    payload_model: type[UserPayload] = UserPayload

    def _parse(self, data: Any) -> UserPayload:
        if isinstance(data, Mapping):
            return self.payload_model.model_validate(data)
        # ORM instances and other attribute-bearing objects
        return self.payload_model.model_validate(data, from_attributes=True)

    def _violations_from(self, exc: ValidationError) -> list[Violation]:
        seen: dict[str, Violation] = {}
        for error in exc.errors():
            loc = error.get("loc") or ()
            if not loc:
                raise TypeError("user record must be a mapping or an object with user attributes") from exc
            field = str(loc[0])
            # first failing constraint decides the reason
            seen.setdefault(field, Violation(field, _reason_for(error)))
        return sorted(seen.values(), key=lambda v: _FIELD_ORDER.get(v.field, len(_FIELD_ORDER)))

    def validate(self, data: Any) -> list[Violation]:
        """Return all violations for `data`, in field declaration order. Empty means valid."""
        try:
            self._parse(data)
        except ValidationError as exc:
            return self._violations_from(exc)
        return []

    def validate_or_raise(self, data: Any) -> UserPayload:
        """
        Parse `data` into a `UserPayload` or raise `ValidationFailedError` carrying
        every violation found.
        """
        try:
            return self._parse(data)
        except ValidationError as exc:
            violations = self._violations_from(exc)
            logger.info(
                "validator.rejected",
                extra={"violations": [str(v) for v in violations]},
            )
            raise ValidationFailedError(violations) from None


@lru_cache()
def get_user_validator() -> UserValidator:
    return UserValidator()
