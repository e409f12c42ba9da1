"""
Domain Exceptions

Typed failures raised by the service layer. Routers never build HTTP errors
for these themselves; app.main registers one exception handler per class
and converts them to JSON responses:

- NotFoundError          -> 404
- InvalidInputError      -> 422
- DuplicateError         -> 409
- ConflictError          -> 503 (transient, with Retry-After)
- StoreUnavailableError  -> 503
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all service-layer errors."""

    status_code: int = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(CatalogError):
    """Raised when a referenced book, user, review, entry or category is missing."""

    status_code = 404

    def __init__(self, resource: str, identifier: Any) -> None:
        super().__init__(f"{resource} with id {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class InvalidInputError(CatalogError):
    """Raised when a request is well-formed but violates a data rule."""

    status_code = 422


class DuplicateError(CatalogError):
    """Raised when a record already exists for a unique key."""

    status_code = 409


class ConflictError(CatalogError):
    """
    Raised when a transaction kept losing to concurrent writers.

    The write was not applied; the caller may retry the whole request.
    """

    status_code = 503


class StoreUnavailableError(CatalogError):
    """Raised when the relational store fails for a reason other than contention."""

    status_code = 503
