"""Error types shared by the stores, the consistency engine and the API."""

from __future__ import annotations


class NotFoundError(LookupError):
    """Raised when a dish or calendar week does not exist."""


class ValidationError(ValueError):
    """Raised when an edit is rejected before anything is written."""


class DuplicateDishError(ValidationError):
    """Raised when a dish name clashes (case-insensitively) with an existing dish."""


class StoreUnavailableError(RuntimeError):
    """Raised when the underlying database call fails."""


__all__ = [
    "NotFoundError",
    "ValidationError",
    "DuplicateDishError",
    "StoreUnavailableError",
]
