from __future__ import annotations

import logging
import urllib.parse

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse

from user_directory.directory import Conflict, DirectoryService, InvalidInput, NotFound
from user_directory.deps import get_directory_service
from user_directory.models import UserCreateRequest, UserResponse, to_user_input, to_user_response
from user_directory.user_store import StoreUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _user_location(user_name: str) -> str:
    return "/users/" + urllib.parse.quote(user_name, safe="")


# ":path" so names containing "/" (sent as %2F) still reach the handler, and
# "/users/" arrives as an empty name.
@router.get("/{userName:path}", response_model=UserResponse, name="GetUser")
def get_user_endpoint(
    userName: str,  # noqa: N803 - matches the public path parameter
    service: DirectoryService = Depends(get_directory_service),
):
    try:
        user = service.get_user(userName)
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreUnavailable as e:
        logger.exception("User lookup failed")
        raise HTTPException(status_code=503, detail=str(e))

    out = to_user_response(user).model_dump(mode="json", by_alias=True)
    return JSONResponse(out)


@router.post("", response_model=UserResponse, status_code=201, name="AddUser")
def add_user_endpoint(
    payload: UserCreateRequest = Body(...),
    service: DirectoryService = Depends(get_directory_service),
):
    """Register a user.

    Accepts:
      {"id": "optional uuid", "userName": "alice", "email": "a@x.com"}

    Responds 201 with a Location header pointing at GET /users/{userName}.
    """
    try:
        user = service.register_user(to_user_input(payload))
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Conflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreUnavailable as e:
        logger.exception("User registration failed")
        raise HTTPException(status_code=503, detail=str(e))

    out = to_user_response(user).model_dump(mode="json", by_alias=True)
    return JSONResponse(out, status_code=201, headers={"Location": _user_location(user.user_name)})
