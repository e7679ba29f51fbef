"""User/Post CRUD API with bearer-token auth, plus a small HTTP client."""

__version__ = "0.1.0"
