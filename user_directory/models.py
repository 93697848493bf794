from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from user_directory.directory import UserInput
from user_directory.user_store import User


class UserCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # userName is optional at the wire level so that a missing name reaches the
    # service and comes back as a 400 rather than a 422 validation error.
    id: Optional[uuid.UUID] = Field(default=None, description="Optional client-chosen identifier")
    user_name: Optional[str] = Field(default=None, alias="userName", description="Unique user name")
    email: Optional[str] = Field(default=None, description="Contact e-mail (not validated)")


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID
    user_name: str = Field(alias="userName")
    email: str


def to_user_input(payload: UserCreateRequest) -> UserInput:
    return UserInput(user_name=payload.user_name, email=payload.email, id=payload.id)


def to_user_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, user_name=user.user_name, email=user.email)
