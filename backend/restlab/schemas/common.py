from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# Ids are stored as signed 64-bit integers.
ID_MIN = -(2**63)
ID_MAX = 2**63 - 1


class ErrorResponse(BaseModel):
    error: str


class SuccessResponse(BaseModel):
    message: str
    data: dict[str, Any] | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
    message: str = "Server is running"


class ConfigResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bearer_token: str = Field(alias="bearerToken")
