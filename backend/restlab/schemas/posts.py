from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from restlab.schemas.common import ID_MAX, ID_MIN


class CreatePostRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(default=0, alias="userId", ge=ID_MIN, le=ID_MAX)
    title: str = ""
    body: str = ""

    def missing_fields(self) -> list[str]:
        return [f for f in ("title", "body") if not getattr(self, f)]


class Post(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    user_id: int = Field(alias="userId")
    title: str
    body: str

    created_at: datetime | None = None
    updated_at: datetime | None = None
