"""
CORS and bearer-token middleware.

`CORSHeadersMiddleware` is installed outermost: it answers every OPTIONS
request with an empty 200 and stamps the CORS headers on every response,
including 401s produced further in. Unhandled exceptions from the app are
turned into a JSON 500 here so that they carry the headers too.

`BearerAuthMiddleware` guards every non-public path with the single configured
token.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Iterable
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from restlab.errors import AuthError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Authorization, Content-Type",
}

PUBLIC_PATHS = frozenset({"/health", "/config", "/docs", "/openapi.json", "/redoc"})


def check_bearer(header: str | None, token: str) -> None:
    """Raise `AuthError` unless `header` is exactly ``Bearer <token>``.

    The prefix is case-sensitive and the token is compared verbatim, in
    constant time.
    """
    if not header:
        raise AuthError("Missing Authorization header")
    if not header.startswith(BEARER_PREFIX):
        raise AuthError("Invalid Authorization format. Use: Bearer <token>")
    supplied = header[len(BEARER_PREFIX):]
    if not hmac.compare_digest(supplied.encode("utf-8"), token.encode("utf-8")):
        raise AuthError("Invalid token")


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("Unhandled error on %s %s", request.method, request.url.path)
                response = JSONResponse(status_code=500, content={"error": "Internal server error"})
        response.headers.update(CORS_HEADERS)
        return response


class BearerAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, token: str, public_paths: Iterable[str] | None = None):
        super().__init__(app)
        self.token = token
        self.public_paths = frozenset(public_paths) if public_paths is not None else PUBLIC_PATHS

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS" or request.url.path in self.public_paths:
            return await call_next(request)

        try:
            check_bearer(request.headers.get("Authorization"), self.token)
        except AuthError as exc:
            logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.message)
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.message},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)
