from fastapi import APIRouter

from restlab.api.endpoints import meta, posts, users
from restlab.schemas.common import ErrorResponse

# Every resource route may answer with `{"error": ...}` on these statuses.
ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 401, 404, 405, 409, 500)}

api_router = APIRouter()

api_router.include_router(meta.router, tags=["meta"])
api_router.include_router(users.router, prefix="/users", tags=["users"], responses=ERROR_RESPONSES)
api_router.include_router(posts.router, prefix="/posts", tags=["posts"], responses=ERROR_RESPONSES)
