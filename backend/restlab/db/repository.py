from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from restlab.db.models import PostRecord, UserRecord
from restlab.db.session import Database
from restlab.errors import DuplicateRecord, RecordNotFound, StoreError
from restlab.schemas.posts import Post
from restlab.schemas.users import User

logger = logging.getLogger(__name__)


def _user_out(rec: UserRecord) -> User:
    return User(
        id=rec.id,
        name=rec.name,
        email=rec.email,
        username=rec.username,
        created_at=rec.created_at,
        updated_at=rec.updated_at,
    )


def _post_out(rec: PostRecord) -> Post:
    return Post(
        id=rec.id,
        user_id=rec.user_id,
        title=rec.title,
        body=rec.body,
        created_at=rec.created_at,
        updated_at=rec.updated_at,
    )


def get_user_record(db: Session, user_id: int) -> UserRecord | None:
    return db.query(UserRecord).filter(UserRecord.id == user_id).first()


def get_post_record(db: Session, post_id: int) -> PostRecord | None:
    return db.query(PostRecord).filter(PostRecord.id == post_id).first()


class SqlStore:
    """`DataStore` backed by SQLAlchemy.

    Each operation checks a connection out of the pool through its own session
    and returns it when the operation ends.
    """

    def __init__(self, database: Database):
        self.database = database

    @contextmanager
    def _session(self, entity: str) -> Iterator[Session]:
        db = self.database.SessionLocal()
        try:
            yield db
        except IntegrityError as exc:
            db.rollback()
            # Users carry the only unique constraints (email, username).
            if entity == "user":
                raise DuplicateRecord(entity) from exc
            raise StoreError(f"{entity} write rejected") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Store operation on %s failed: %s", entity, exc)
            raise StoreError(f"{entity} operation failed") from exc
        finally:
            db.close()

    # -----------------
    # Users
    # -----------------

    def get_user(self, user_id: int) -> User:
        with self._session("user") as db:
            rec = get_user_record(db, user_id)
            if rec is None:
                raise RecordNotFound("user", user_id)
            return _user_out(rec)

    def create_user(self, *, name: str, email: str, username: str) -> User:
        with self._session("user") as db:
            rec = UserRecord(name=name, email=email, username=username)
            db.add(rec)
            db.commit()
            db.refresh(rec)
            return _user_out(rec)

    def update_user(self, user_id: int, *, name: str, email: str, username: str) -> User:
        with self._session("user") as db:
            rec = get_user_record(db, user_id)
            if rec is None:
                raise RecordNotFound("user", user_id)
            rec.name = name
            rec.email = email
            rec.username = username
            rec.updated_at = func.now()
            db.add(rec)
            db.commit()
            db.refresh(rec)
            return _user_out(rec)

    def delete_user(self, user_id: int) -> None:
        with self._session("user") as db:
            rec = get_user_record(db, user_id)
            if rec is None:
                raise RecordNotFound("user", user_id)
            db.delete(rec)
            db.commit()

    # -----------------
    # Posts
    # -----------------

    def get_post(self, post_id: int) -> Post:
        with self._session("post") as db:
            rec = get_post_record(db, post_id)
            if rec is None:
                raise RecordNotFound("post", post_id)
            return _post_out(rec)

    def create_post(self, *, user_id: int, title: str, body: str) -> Post:
        with self._session("post") as db:
            rec = PostRecord(user_id=user_id, title=title, body=body)
            db.add(rec)
            db.commit()
            db.refresh(rec)
            return _post_out(rec)

    def update_post(self, post_id: int, *, user_id: int, title: str, body: str) -> Post:
        with self._session("post") as db:
            rec = get_post_record(db, post_id)
            if rec is None:
                raise RecordNotFound("post", post_id)
            rec.user_id = user_id
            rec.title = title
            rec.body = body
            rec.updated_at = func.now()
            db.add(rec)
            db.commit()
            db.refresh(rec)
            return _post_out(rec)

    def delete_post(self, post_id: int) -> None:
        with self._session("post") as db:
            rec = get_post_record(db, post_id)
            if rec is None:
                raise RecordNotFound("post", post_id)
            db.delete(rec)
            db.commit()

    def close(self) -> None:
        self.database.dispose()
