from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CreateUserRequest(BaseModel):
    # Missing fields decode to "" and are rejected by the handler.
    name: str = ""
    email: str = ""
    username: str = ""

    def missing_fields(self) -> list[str]:
        return [f for f in ("name", "email", "username") if not getattr(self, f)]


class UpdateUserRequest(CreateUserRequest):
    pass


class PatchUserRequest(BaseModel):
    """Partial update: fields left as None are not touched."""

    name: str | None = None
    email: str | None = None


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    username: str

    created_at: datetime | None = None
    updated_at: datetime | None = None
