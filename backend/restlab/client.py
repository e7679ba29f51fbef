"""Small JSON-over-HTTP client.

Used against this service and against third-party mock APIs shaped the same
way (``/users/{id}``, ``/posts/{id}``). Every call goes through one pipeline:

1. marshal the optional body to JSON;
2. send it with ``Authorization: Bearer <token>`` and
   ``Content-Type: application/json``; the timeout bounds the whole call;
3. read the whole body, then reject any status outside 200-299;
4. decode the body into ``result_type`` when one was given and the body is
   not empty.

Each step fails with its own `ClientError` subclass, chained to the cause.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError, to_json

from restlab.config import ClientSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 10.0


class ClientError(Exception):
    """Base class for everything `APIClient` raises."""


class MarshalError(ClientError):
    pass


class TransportError(ClientError):
    """Connection failure, timeout, or cancellation before a response arrived."""


class StatusError(ClientError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API returned status {status_code}: {body}")


class UnmarshalError(ClientError):
    pass


class _ClientConfig:
    def __init__(
        self,
        base_url: str,
        bearer_token: str,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.bearer_token = bearer_token
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: ClientSettings | None = None, **kwargs: Any):
        settings = settings or ClientSettings()
        return cls(settings.api_base_url, settings.bearer_token, settings.api_timeout, **kwargs)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.bearer_token}",
            "Content-Type": "application/json",
        }

    def _url(self, endpoint: str) -> str:
        return self.base_url + endpoint

    @staticmethod
    def _marshal(data: Any) -> bytes | None:
        if data is None:
            return None
        try:
            return to_json(data, by_alias=True, exclude_none=True)
        except (PydanticSerializationError, TypeError, ValueError) as exc:
            raise MarshalError(f"failed to marshal request data: {exc}") from exc

    @staticmethod
    def _handle(method: str, url: str, status_code: int, body: bytes, encoding: str | None, result_type: Any) -> Any:
        logger.debug("%s %s -> %d", method, url, status_code)
        if not 200 <= status_code < 300:
            raise StatusError(status_code, body.decode(encoding or "utf-8", errors="replace"))
        if result_type is None or not body:
            return None
        try:
            return TypeAdapter(result_type).validate_json(body)
        except PydanticValidationError as exc:
            raise UnmarshalError(f"failed to parse JSON response: {exc}") from exc


class APIClient(_ClientConfig):
    """Blocking client. Holds configuration only; each call opens and closes its own connection."""

    def request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        result_type: type[T] | None = None,
        *,
        timeout: float | None = None,
    ) -> T | None:
        url = self._url(endpoint)
        content = self._marshal(data)
        timeout = self.timeout if timeout is None else timeout
        # httpx timeouts bound each phase; the deadline bounds the whole call.
        deadline = time.monotonic() + timeout
        try:
            with httpx.Client(timeout=timeout, transport=self.transport) as client:
                with client.stream(method, url, content=content, headers=self._headers()) as response:
                    body = bytearray()
                    for chunk in response.iter_bytes():
                        body.extend(chunk)
                        if time.monotonic() > deadline:
                            raise TransportError(f"request exceeded {timeout}s timeout")
                    status_code, encoding = response.status_code, response.encoding
        except httpx.HTTPError as exc:
            raise TransportError(f"request failed: {exc}") from exc
        return self._handle(method, url, status_code, bytes(body), encoding, result_type)

    def get(self, endpoint: str, result_type: type[T] | None = None, **kwargs: Any) -> T | None:
        return self.request("GET", endpoint, None, result_type, **kwargs)

    def post(self, endpoint: str, data: Any, result_type: type[T] | None = None, **kwargs: Any) -> T | None:
        return self.request("POST", endpoint, data, result_type, **kwargs)

    def put(self, endpoint: str, data: Any, result_type: type[T] | None = None, **kwargs: Any) -> T | None:
        return self.request("PUT", endpoint, data, result_type, **kwargs)

    def patch(self, endpoint: str, data: Any, result_type: type[T] | None = None, **kwargs: Any) -> T | None:
        return self.request("PATCH", endpoint, data, result_type, **kwargs)

    def delete(self, endpoint: str, **kwargs: Any) -> None:
        self.request("DELETE", endpoint, None, None, **kwargs)


class AsyncAPIClient(_ClientConfig):
    """Same pipeline as `APIClient` for asyncio callers.

    Cancelling the calling task aborts the request; the connection is closed
    on the way out of the ``async with`` block.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        result_type: type[T] | None = None,
        *,
        timeout: float | None = None,
    ) -> T | None:
        url = self._url(endpoint)
        content = self._marshal(data)
        timeout = self.timeout if timeout is None else timeout

        async def send() -> httpx.Response:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                return await client.request(method, url, content=content, headers=self._headers())

        try:
            response = await asyncio.wait_for(send(), timeout)
        except asyncio.TimeoutError as exc:
            raise TransportError(f"request exceeded {timeout}s timeout") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"request failed: {exc}") from exc
        return self._handle(method, url, response.status_code, response.content, response.encoding, result_type)

    async def get(self, endpoint: str, result_type: type[T] | None = None, **kwargs: Any) -> T | None:
        return await self.request("GET", endpoint, None, result_type, **kwargs)

    async def post(self, endpoint: str, data: Any, result_type: type[T] | None = None, **kwargs: Any) -> T | None:
        return await self.request("POST", endpoint, data, result_type, **kwargs)

    async def put(self, endpoint: str, data: Any, result_type: type[T] | None = None, **kwargs: Any) -> T | None:
        return await self.request("PUT", endpoint, data, result_type, **kwargs)

    async def patch(self, endpoint: str, data: Any, result_type: type[T] | None = None, **kwargs: Any) -> T | None:
        return await self.request("PATCH", endpoint, data, result_type, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> None:
        await self.request("DELETE", endpoint, None, None, **kwargs)
