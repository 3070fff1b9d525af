"""Domain error taxonomy. The API layer maps each class to an HTTP status."""

from __future__ import annotations


class RockSpotterError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(RockSpotterError):
    """A referenced user, rock, hunt or achievement does not exist."""

    status_code = 404


class ValidationError(RockSpotterError):
    """The request references an entity inconsistent with its context."""

    status_code = 400


class PermissionDeniedError(RockSpotterError):
    """The caller does not own (or moderate) the entity it tries to change."""

    status_code = 403


class ConflictError(RockSpotterError):
    """Uniqueness violation, or a repeat action when first-time semantics were requested."""

    status_code = 409
