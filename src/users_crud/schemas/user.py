"""
Response shapes for the users API.

Request bodies are not modelled here: routes accept the raw JSON object and hand
it to `UserValidator`, so every field violation is collected and reported in
the application's own `'{field}' is {reason}` format rather than FastAPI's 422.
"""

from pydantic import BaseModel, ConfigDict


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_name: str
    first_name: str
    last_name: str
    email: str
    status: str
    department: str | None = None


# Example body accepted by POST / PUT, shown in the OpenAPI docs.
USER_BODY_EXAMPLE = {
    "user_name": "JohnDoe",
    "first_name": "John",
    "last_name": "Doe",
    "email": "johndoe@yahoo.com",
    "status": "A",
    "department": "Accounts",
}

__all__ = ["UserRead", "USER_BODY_EXAMPLE"]
