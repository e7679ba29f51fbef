import asyncio
import json
import socket
import threading
import time

import httpx
import pytest

from restlab.client import (
    APIClient,
    AsyncAPIClient,
    MarshalError,
    StatusError,
    TransportError,
    UnmarshalError,
)
from restlab.config import ClientSettings
from restlab.db.memory import MemoryStore
from restlab.main import create_app
from restlab.schemas.posts import CreatePostRequest, Post
from restlab.schemas.users import CreateUserRequest, PatchUserRequest, User

from conftest import TOKEN, make_settings

BASE = "https://api.example.test"

LEANNE = {
    "id": 1,
    "name": "Leanne Graham",
    "username": "Bret",
    "email": "Sincere@april.biz",
    "address": {"city": "Gwenborough"},
}


def _client(handler, **kwargs) -> APIClient:
    return APIClient(BASE, "abc", transport=httpx.MockTransport(handler), **kwargs)


def test_headers_and_url_on_every_request() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=LEANNE)

    api = APIClient(BASE + "/", "abc", transport=httpx.MockTransport(handler))
    api.get("/users/1", User)
    api.delete("/users/1")

    assert [str(r.url) for r in seen] == [f"{BASE}/users/1", f"{BASE}/users/1"]
    for request in seen:
        assert request.headers["Authorization"] == "Bearer abc"
        assert request.headers["Content-Type"] == "application/json"


def test_get_decodes_into_model_ignoring_extra_fields() -> None:
    user = _client(lambda r: httpx.Response(200, json=LEANNE)).get("/users/1", User)
    assert isinstance(user, User)
    assert (user.id, user.name, user.username) == (1, "Leanne Graham", "Bret")


def test_post_marshals_by_alias() -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": 101, "userId": 1, "title": "t", "body": "b"})

    post = _client(handler).post("/posts", CreatePostRequest(user_id=1, title="t", body="b"), Post)
    assert bodies == [{"userId": 1, "title": "t", "body": "b"}]
    assert post.user_id == 1
    assert post.id == 101


def test_patch_omits_unset_fields() -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=LEANNE)

    _client(handler).patch("/users/1", PatchUserRequest(name="John Patched"), User)
    assert bodies == [{"name": "John Patched"}]


def test_plain_dict_body_and_no_result_type() -> None:
    result = _client(lambda r: httpx.Response(200, json={"ok": True})).put("/users/1", {"name": "x"})
    assert result is None

    result = _client(lambda r: httpx.Response(200, json={"ok": True})).get("/anything", dict)
    assert result == {"ok": True}


def test_empty_success_body_is_not_an_error() -> None:
    assert _client(lambda r: httpx.Response(204)).get("/users/1", User) is None


def test_non_success_status_carries_code_and_raw_body() -> None:
    api = _client(lambda r: httpx.Response(502, text="<html>bad gateway</html>"))
    with pytest.raises(StatusError) as info:
        api.get("/users/1", User)
    assert info.value.status_code == 502
    assert info.value.body == "<html>bad gateway</html>"
    assert "502" in str(info.value)


def test_malformed_json_is_unmarshal_error() -> None:
    api = _client(lambda r: httpx.Response(200, text="{not json"))
    with pytest.raises(UnmarshalError) as info:
        api.get("/users/1", User)
    assert info.value.__cause__ is not None


def test_wrong_shape_is_unmarshal_error() -> None:
    api = _client(lambda r: httpx.Response(200, json={"id": "one"}))
    with pytest.raises(UnmarshalError):
        api.get("/users/1", User)


def test_unserializable_body_is_marshal_error() -> None:
    api = _client(lambda r: pytest.fail("request must not be sent"))
    with pytest.raises(MarshalError):
        api.post("/users", {"when": object()})


@pytest.fixture
def slow_server():
    """Local HTTP server that sends a 20-byte JSON body one byte every 0.1s."""
    body = b'{"padding":"xxxxxx"}'
    stop = threading.Event()
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen()
    listener.settimeout(0.2)

    def serve() -> None:
        while not stop.is_set():
            try:
                conn, _ = listener.accept()
            except OSError:
                continue
            with conn:
                try:
                    received = b""
                    while b"\r\n\r\n" not in received:
                        chunk = conn.recv(4096)
                        if not chunk:
                            break
                        received += chunk
                    conn.sendall(
                        b"HTTP/1.1 200 OK\r\n"
                        b"Content-Type: application/json\r\n"
                        b"Content-Length: %d\r\n\r\n" % len(body)
                    )
                    for byte in body:
                        if stop.is_set():
                            break
                        conn.sendall(bytes([byte]))
                        time.sleep(0.1)
                except OSError:
                    pass

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield "http://127.0.0.1:%d" % listener.getsockname()[1]
    stop.set()
    thread.join(timeout=5)
    listener.close()


def test_timeout_bounds_the_whole_call(slow_server) -> None:
    # Every byte arrives well inside the read timeout; the body as a whole does not.
    started = time.monotonic()
    with pytest.raises(TransportError):
        APIClient(slow_server, "abc", timeout=0.3).get("/users/1")
    assert time.monotonic() - started < 1.5


def test_async_timeout_bounds_the_whole_call(slow_server) -> None:
    api = AsyncAPIClient(slow_server, "abc", timeout=0.3)
    started = time.monotonic()
    with pytest.raises(TransportError):
        asyncio.run(api.get("/users/1"))
    assert time.monotonic() - started < 1.5


def test_per_call_timeout_overrides_default(slow_server) -> None:
    started = time.monotonic()
    with pytest.raises(TransportError):
        APIClient(slow_server, "abc", timeout=30).get("/users/1", timeout=0.3)
    assert time.monotonic() - started < 1.5


def test_falsy_per_call_timeout_is_not_replaced_by_default() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.extensions["timeout"])
        return httpx.Response(200, json=LEANNE)

    api = _client(handler, timeout=30)
    api.get("/users/1", User, timeout=5)
    with pytest.raises(TransportError):
        api.get("/users/1", User, timeout=0)
    assert [t["read"] for t in seen] == [5, 0]


def test_connection_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        _client(handler).get("/users/1", User)


def test_from_settings() -> None:
    settings = ClientSettings(_env_file=None, api_base_url=BASE, bearer_token="abc", api_timeout=3)
    api = APIClient.from_settings(settings)
    assert (api.base_url, api.bearer_token, api.timeout) == (BASE, "abc", 3)


def test_async_cancellation_aborts_request() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(10)
        return httpx.Response(200, json=LEANNE)

    api = AsyncAPIClient(BASE, "abc", transport=httpx.MockTransport(handler))

    async def run() -> None:
        await asyncio.wait_for(api.get("/users/1", User), timeout=0.05)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(run())


def test_async_client_against_app(tmp_path) -> None:
    app = create_app(settings=make_settings(tmp_path), store=MemoryStore())
    transport = httpx.ASGITransport(app=app)
    api = AsyncAPIClient("http://testserver", TOKEN, transport=transport)
    intruder = AsyncAPIClient("http://testserver", "wrong", transport=transport)

    async def run() -> None:
        created = await api.post(
            "/users",
            CreateUserRequest(name="Jane Smith", email="jane.smith@example.com", username="janesmith"),
            User,
        )
        assert created.id > 0
        fetched = await api.get(f"/users/{created.id}", User)
        assert fetched.name == "Jane Smith"

        await api.delete(f"/users/{created.id}")
        with pytest.raises(StatusError) as info:
            await api.get(f"/users/{created.id}", User)
        assert info.value.status_code == 404
        assert json.loads(info.value.body) == {"error": "User not found"}

        with pytest.raises(StatusError) as info:
            await intruder.get("/users/1", User)
        assert info.value.status_code == 401

    asyncio.run(run())
