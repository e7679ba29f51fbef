from __future__ import annotations

from fastapi import APIRouter, Depends

from restlab.api.params import RecordId
from restlab.api.translate import store_errors
from restlab.db.deps import get_store
from restlab.db.store import DataStore
from restlab.errors import InvalidIdError, ValidationError
from restlab.schemas.common import SuccessResponse
from restlab.schemas.posts import CreatePostRequest, Post


router = APIRouter()

REQUIRED_MESSAGE = "Title and body are required"


@router.post("", response_model=Post, status_code=201)
def api_create_post(req: CreatePostRequest, store: DataStore = Depends(get_store)) -> Post:
    missing = req.missing_fields()
    if missing:
        raise ValidationError(REQUIRED_MESSAGE, missing)
    with store_errors("Post", "create"):
        return store.create_post(user_id=req.user_id, title=req.title, body=req.body)


@router.get("/{post_id}", response_model=Post)
def api_get_post(post_id: RecordId, store: DataStore = Depends(get_store)) -> Post:
    with store_errors("Post", "fetch"):
        return store.get_post(post_id)


@router.put("/{post_id}", response_model=Post)
def api_update_post(post_id: RecordId, req: CreatePostRequest, store: DataStore = Depends(get_store)) -> Post:
    missing = req.missing_fields()
    if missing:
        raise ValidationError(REQUIRED_MESSAGE, missing)
    with store_errors("Post", "update"):
        return store.update_post(post_id, user_id=req.user_id, title=req.title, body=req.body)


@router.delete("/{post_id}", response_model=SuccessResponse)
def api_delete_post(post_id: RecordId, store: DataStore = Depends(get_store)) -> SuccessResponse:
    with store_errors("Post", "delete"):
        store.delete_post(post_id)
    return SuccessResponse(message="Post deleted successfully", data={"id": post_id})


@router.api_route("/", methods=["GET", "PUT", "DELETE"], include_in_schema=False)
def api_post_without_id() -> None:
    raise InvalidIdError("post")
