"""
Error taxonomy for the Tubely upload workflow.

Every stage of an upload (identity, ownership, media type validation,
transfer, commit) raises one of the classified errors below. Each class
carries the HTTP status it maps to and a client-safe default message. The
internal cause is attached through exception chaining (``raise ... from err``)
and is only ever logged by the response formatter, never returned.
"""

from fastapi import status


class TubelyError(Exception):
    """Base exception for classified upload errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(TubelyError):
    """Malformed id, malformed multipart form, or missing form field."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthenticatedError(TubelyError):
    """Missing, invalid or expired bearer credential."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Couldn't validate JWT"


class ForbiddenError(TubelyError):
    """Caller is authenticated but does not own the video."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You don't own this video"


class NotFoundError(TubelyError):
    """Video id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Couldn't find video"


class UnsupportedMediaTypeError(TubelyError):
    """Declared content type is outside the route's allow-list."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Unsupported media type"


class CapacityError(TubelyError):
    """Request body exceeded the route's size cap."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    default_message = "Upload is too large"


class AssetIOError(TubelyError):
    """Local read or write fault while moving upload bytes."""

    default_message = "Couldn't write file"


class StorageUnavailableError(TubelyError):
    """Object storage rejected or failed the put."""

    default_message = "Couldn't upload video to storage"


class PersistenceError(TubelyError):
    """Video record could not be read or updated."""

    default_message = "Couldn't update video"


__all__ = [
    "AssetIOError",
    "BadRequestError",
    "CapacityError",
    "ForbiddenError",
    "NotFoundError",
    "PersistenceError",
    "StorageUnavailableError",
    "TubelyError",
    "UnauthenticatedError",
    "UnsupportedMediaTypeError",
]
