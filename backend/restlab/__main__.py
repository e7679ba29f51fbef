from __future__ import annotations

import logging

import uvicorn

from restlab.config import get_settings
from restlab.main import configure_logging

logger = logging.getLogger("restlab")

ENDPOINTS = (
    ("GET", "/health", "no auth"),
    ("GET", "/config", "no auth"),
    ("GET", "/users/{id}", "get user"),
    ("POST", "/users", "create user"),
    ("PUT", "/users/{id}", "replace user"),
    ("PATCH", "/users/{id}", "update name/email"),
    ("DELETE", "/users/{id}", "delete user"),
    ("GET", "/posts/{id}", "get post"),
    ("POST", "/posts", "create post"),
    ("PUT", "/posts/{id}", "replace post"),
    ("DELETE", "/posts/{id}", "delete post"),
)


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("REST API listening on http://%s:%d (store: %s)", settings.host, settings.port, settings.store_backend)
    for method, path, note in ENDPOINTS:
        logger.info("  %-6s %-12s %s", method, path, note)
    logger.info("Authenticated routes require 'Authorization: Bearer <token>'")

    uvicorn.run(
        "restlab.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
