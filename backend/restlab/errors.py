"""
Exception classes used across the service.

Three families live here:

- `ApiError` and subclasses: failures that map to an HTTP status and a
  human-readable message. The app renders them as `{"error": message}`.
- `StoreError` and subclasses: typed failures raised by a `DataStore`.
  Handlers translate them into `ApiError`s and never forward their text.
- Client errors (`ClientError` and subclasses) live in `restlab.client`.
"""

from __future__ import annotations


class ApiError(Exception):
    """Base class for errors returned to HTTP callers."""

    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DecodeError(ApiError):
    """Request body is not valid JSON for the expected shape."""

    status_code = 400

    def __init__(self, message: str = "Invalid request body", details: dict | None = None):
        super().__init__(message, details)


class ValidationError(ApiError):
    """Request body decoded but required fields are empty."""

    status_code = 400

    def __init__(self, message: str, missing_fields: list[str] | None = None):
        details = {"missing_fields": missing_fields} if missing_fields else {}
        super().__init__(message, details)


class AuthError(ApiError):
    status_code = 401


class NotFoundError(ApiError):
    status_code = 404

    def __init__(self, resource: str, resource_id: int | None = None):
        details = {"id": resource_id} if resource_id is not None else {}
        super().__init__(f"{resource} not found", details)


class InvalidIdError(ApiError):
    """Path id is missing, not an integer, or outside the stored id range."""

    status_code = 400

    def __init__(self, resource: str):
        super().__init__(f"Invalid {resource} ID")


class MethodNotAllowed(ApiError):
    status_code = 405

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class ConflictError(ApiError):
    status_code = 409


class StoreFailure(ApiError):
    """Any store failure that is neither a miss nor a conflict."""

    status_code = 500

    def __init__(self, verb: str, resource: str):
        super().__init__(f"Failed to {verb} {resource}", {"verb": verb, "resource": resource})


class StoreError(Exception):
    """Base class for data-access failures."""


class RecordNotFound(StoreError):
    def __init__(self, entity: str, record_id: int):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} {record_id} not found")


class DuplicateRecord(StoreError):
    """A uniqueness constraint rejected the write."""

    def __init__(self, entity: str, message: str | None = None):
        self.entity = entity
        super().__init__(message or f"duplicate {entity}")
