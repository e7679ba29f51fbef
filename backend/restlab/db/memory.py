from __future__ import annotations

import threading
from datetime import datetime, timezone

from restlab.errors import DuplicateRecord, RecordNotFound
from restlab.schemas.posts import Post
from restlab.schemas.users import User


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryStore:
    """`DataStore` kept in process memory.

    Used for local runs without a database (`STORE_BACKEND=memory`) and as a
    test double. Applies the same uniqueness rule as the SQL schema.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[int, User] = {}
        self._posts: dict[int, Post] = {}
        self._next_user_id = 1
        self._next_post_id = 1

    def _check_unique(self, email: str, username: str, *, exclude_id: int | None = None) -> None:
        for user in self._users.values():
            if user.id == exclude_id:
                continue
            if user.email == email or user.username == username:
                raise DuplicateRecord("user")

    def get_user(self, user_id: int) -> User:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise RecordNotFound("user", user_id)
            return user.model_copy()

    def create_user(self, *, name: str, email: str, username: str) -> User:
        with self._lock:
            self._check_unique(email, username)
            now = _now()
            user = User(
                id=self._next_user_id,
                name=name,
                email=email,
                username=username,
                created_at=now,
                updated_at=now,
            )
            self._users[user.id] = user
            self._next_user_id += 1
            return user.model_copy()

    def update_user(self, user_id: int, *, name: str, email: str, username: str) -> User:
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                raise RecordNotFound("user", user_id)
            self._check_unique(email, username, exclude_id=user_id)
            user = current.model_copy(
                update={"name": name, "email": email, "username": username, "updated_at": _now()}
            )
            self._users[user_id] = user
            return user.model_copy()

    def delete_user(self, user_id: int) -> None:
        with self._lock:
            if self._users.pop(user_id, None) is None:
                raise RecordNotFound("user", user_id)

    def get_post(self, post_id: int) -> Post:
        with self._lock:
            post = self._posts.get(post_id)
            if post is None:
                raise RecordNotFound("post", post_id)
            return post.model_copy()

    def create_post(self, *, user_id: int, title: str, body: str) -> Post:
        with self._lock:
            now = _now()
            post = Post(
                id=self._next_post_id,
                user_id=user_id,
                title=title,
                body=body,
                created_at=now,
                updated_at=now,
            )
            self._posts[post.id] = post
            self._next_post_id += 1
            return post.model_copy()

    def update_post(self, post_id: int, *, user_id: int, title: str, body: str) -> Post:
        with self._lock:
            current = self._posts.get(post_id)
            if current is None:
                raise RecordNotFound("post", post_id)
            post = current.model_copy(
                update={"user_id": user_id, "title": title, "body": body, "updated_at": _now()}
            )
            self._posts[post_id] = post
            return post.model_copy()

    def delete_post(self, post_id: int) -> None:
        with self._lock:
            if self._posts.pop(post_id, None) is None:
                raise RecordNotFound("post", post_id)

    def close(self) -> None:
        with self._lock:
            self._users.clear()
            self._posts.clear()
