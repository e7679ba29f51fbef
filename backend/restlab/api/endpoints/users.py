from __future__ import annotations

from fastapi import APIRouter, Depends

from restlab.api.params import RecordId
from restlab.api.translate import USER_CONFLICT, store_errors
from restlab.db.deps import get_store
from restlab.db.store import DataStore
from restlab.errors import InvalidIdError, ValidationError
from restlab.schemas.common import SuccessResponse
from restlab.schemas.users import CreateUserRequest, PatchUserRequest, UpdateUserRequest, User


router = APIRouter()

REQUIRED_MESSAGE = "Name, email, and username are required"


@router.post("", response_model=User, status_code=201)
def api_create_user(req: CreateUserRequest, store: DataStore = Depends(get_store)) -> User:
    missing = req.missing_fields()
    if missing:
        raise ValidationError(REQUIRED_MESSAGE, missing)
    with store_errors("User", "create", conflict=USER_CONFLICT):
        return store.create_user(name=req.name, email=req.email, username=req.username)


@router.get("/{user_id}", response_model=User)
def api_get_user(user_id: RecordId, store: DataStore = Depends(get_store)) -> User:
    with store_errors("User", "fetch"):
        return store.get_user(user_id)


@router.put("/{user_id}", response_model=User)
def api_update_user(user_id: RecordId, req: UpdateUserRequest, store: DataStore = Depends(get_store)) -> User:
    missing = req.missing_fields()
    if missing:
        raise ValidationError(REQUIRED_MESSAGE, missing)
    with store_errors("User", "update", conflict=USER_CONFLICT):
        return store.update_user(user_id, name=req.name, email=req.email, username=req.username)


@router.patch("/{user_id}", response_model=User)
def api_patch_user(user_id: RecordId, req: PatchUserRequest, store: DataStore = Depends(get_store)) -> User:
    """Apply the fields present in the body on top of the stored user.

    Read-modify-write without a transaction: concurrent patches on the same
    user are last-write-wins.
    """
    with store_errors("User", "update", conflict=USER_CONFLICT):
        current = store.get_user(user_id)
        return store.update_user(
            user_id,
            name=req.name if req.name is not None else current.name,
            email=req.email if req.email is not None else current.email,
            username=current.username,
        )


@router.delete("/{user_id}", response_model=SuccessResponse)
def api_delete_user(user_id: RecordId, store: DataStore = Depends(get_store)) -> SuccessResponse:
    with store_errors("User", "delete"):
        store.delete_user(user_id)
    return SuccessResponse(message="User deleted successfully", data={"id": user_id})


@router.api_route("/", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
def api_user_without_id() -> None:
    raise InvalidIdError("user")
