# blogstore/core/exceptions.py
"""
Error taxonomy shared by the CRUD layer and the HTTP surface.

Integrity errors are never recovered automatically: they propagate to the
caller, which decides whether to retry (e.g. regenerate a slug) or reject.
"""
from typing import Any, Optional


class BlogStoreError(Exception):
    """Base class for all data-layer errors."""


class NotFound(BlogStoreError):
    """An id or natural key has no matching row."""

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} {key!r} not found")


class ConstraintViolation(BlogStoreError):
    """A unique or foreign-key rule was broken; prior state is unchanged."""

    def __init__(self, message: str, constraint: Optional[str] = None):
        self.constraint = constraint
        super().__init__(message)


class InvalidState(BlogStoreError):
    """A consistency rule the schema does not enforce was broken."""
