"""
Pydantic models for user data.

Only ``UserRead`` is ever returned to clients; it deliberately has no
room for the password hash, the salt or the access token.  Incoming
user payloads are filtered by ``UserService.before_save_user`` before
they are validated against ``UserWrite``.
"""

from typing import Optional

from pydantic import BaseModel, Field


class UserWrite(BaseModel):
    """Allow‑listed fields of a user create/update payload."""

    email: Optional[str] = Field(None, examples=["user@example.com"])
    password: Optional[str] = Field(None, examples=["strongpassword"])
    email_notifications: Optional[bool] = Field(None, alias="emailNotifications")

    model_config = {
        "populate_by_name": True,
    }


class UserRead(BaseModel):
    """Public view of a user account."""

    id: int
    email: str
    email_notifications: bool = Field(False, alias="emailNotifications")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class LoginRequest(BaseModel):
    """Credentials posted to ``/login``.

    Both fields are optional at the schema level so that incomplete
    payloads get the same ``wrong password`` answer as bad ones.
    """

    email: Optional[str] = None
    password: Optional[str] = None
