"""The data-access interface the HTTP handlers depend on.

Two implementations exist: `restlab.db.repository.SqlStore` (SQLAlchemy) and
`restlab.db.memory.MemoryStore` (in-process dicts). Both raise the typed errors
from `restlab.errors`:

- `RecordNotFound` when the id does not exist;
- `DuplicateRecord` when a user write collides on email or username;
- `StoreError` for anything else.
"""

from __future__ import annotations

from typing import Protocol

from restlab.schemas.posts import Post
from restlab.schemas.users import User


class DataStore(Protocol):
    def get_user(self, user_id: int) -> User: ...

    def create_user(self, *, name: str, email: str, username: str) -> User: ...

    def update_user(self, user_id: int, *, name: str, email: str, username: str) -> User: ...

    def delete_user(self, user_id: int) -> None: ...

    def get_post(self, post_id: int) -> Post: ...

    def create_post(self, *, user_id: int, title: str, body: str) -> Post: ...

    def update_post(self, post_id: int, *, user_id: int, title: str, body: str) -> Post: ...

    def delete_post(self, post_id: int) -> None: ...

    def close(self) -> None: ...
