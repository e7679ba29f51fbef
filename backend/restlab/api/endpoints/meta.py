from __future__ import annotations

from fastapi import APIRouter, Depends

from restlab.config import Settings
from restlab.db.deps import get_app_settings
from restlab.schemas.common import ConfigResponse, HealthResponse


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse()


@router.get("/config", response_model=ConfigResponse)
def client_config(settings: Settings = Depends(get_app_settings)) -> ConfigResponse:
    """Hand the bearer token to the bundled browser frontend.

    Served without auth; the browser UI reads its token from here.
    """
    return ConfigResponse(bearer_token=settings.bearer_token)
