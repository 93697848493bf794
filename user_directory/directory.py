"""Directory service: input contracts for looking up and registering users.

The service holds no state of its own. It validates what callers hand it,
delegates to the injected ``UserStore`` and translates store failures into
``ServiceError`` subclasses that the HTTP layer maps onto status codes.
``StoreUnavailable`` is not translated; it propagates to the caller.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from user_directory.user_store import DuplicateUserId, DuplicateUserName, User, UserStore

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    pass


class InvalidInput(ServiceError):
    pass


class NotFound(ServiceError):
    pass


class Conflict(ServiceError):
    pass


@dataclass(frozen=True)
class UserInput:
    user_name: Optional[str] = None
    email: Optional[str] = None
    id: Optional[uuid.UUID] = None


def _require_user_name(user_name: Optional[str]) -> str:
    if not user_name:
        raise InvalidInput("User name is required!")
    return user_name


class DirectoryService:
    def __init__(self, store: UserStore):
        self._store = store

    def get_user(self, user_name: Optional[str]) -> User:
        name = _require_user_name(user_name)
        user = self._store.find_by_user_name(name)
        if user is None:
            raise NotFound(f"User not found: {name}")
        return user

    def register_user(self, candidate: UserInput) -> User:
        name = _require_user_name(candidate.user_name)

        # The nil UUID is what an unset id deserializes to in some clients;
        # treat it as "generate one".
        user_id = candidate.id if candidate.id and candidate.id.int else uuid.uuid4()
        user = User(id=user_id, user_name=name, email=candidate.email or "")

        try:
            created = self._store.insert(user)
        except DuplicateUserName as e:
            logger.info("Registration conflict on user name %s", name)
            raise Conflict(str(e)) from e
        except DuplicateUserId as e:
            logger.info("Registration conflict on user id %s", user_id)
            raise Conflict(str(e)) from e

        logger.info("Registered user %s", created.user_name)
        return created
