from __future__ import annotations

from fastapi import Request

from restlab.config import Settings
from restlab.db.store import DataStore


def get_store(request: Request) -> DataStore:
    """FastAPI dependency returning the store the app was built with."""
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
