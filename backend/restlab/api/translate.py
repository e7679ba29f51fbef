from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from restlab.errors import (
    ConflictError,
    DuplicateRecord,
    NotFoundError,
    RecordNotFound,
    StoreError,
    StoreFailure,
)

logger = logging.getLogger(__name__)

USER_CONFLICT = "User with this email or username already exists"


@contextmanager
def store_errors(resource: str, verb: str, *, conflict: str | None = None) -> Iterator[None]:
    """Translate typed store errors raised in the block into API errors.

    The store's own message is logged and never returned to the caller.
    """
    try:
        yield
    except RecordNotFound as exc:
        raise NotFoundError(resource, exc.record_id) from exc
    except DuplicateRecord as exc:
        raise ConflictError(conflict or f"{resource} already exists") from exc
    except StoreError as exc:
        logger.error("Failed to %s %s: %s", verb, resource.lower(), exc)
        raise StoreFailure(verb, resource.lower()) from exc
