from __future__ import annotations

from typing import Annotated

from fastapi import Path

from restlab.schemas.common import ID_MAX, ID_MIN

# Out-of-range ids fail validation (400) instead of reaching the database driver.
RecordId = Annotated[int, Path(ge=ID_MIN, le=ID_MAX)]
