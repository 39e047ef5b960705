"""Domain exceptions surfaced to API clients as structured JSON errors."""
from __future__ import annotations

from fastapi import status


class ProfileAPIError(Exception):
    """Base class for errors that map onto a client-facing status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"
    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ProfileAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NoFieldsProvidedError(ValidationError):
    default_message = "No data provided to update"


class ConflictError(ProfileAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists"


class UsernameTakenError(ConflictError):
    default_message = "Username already in use"


class EmailTakenError(ConflictError):
    default_message = "Email already in use"


class AuthRequiredError(ProfileAPIError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Token is required for authentication"


class InvalidTokenError(ProfileAPIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid Token"
    headers = {"WWW-Authenticate": "Bearer"}


class NotFoundError(ProfileAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class UserNotFoundError(NotFoundError):
    default_message = "User not found"


class ImageRejectedError(ProfileAPIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Image rejected"


class MissingImageError(ImageRejectedError):
    default_message = "No file uploaded"


class InvalidImageTypeError(ImageRejectedError):
    default_message = "Invalid file type. Only JPEG, PNG, and GIF are allowed."


class ImageTooLargeError(ImageRejectedError):
    default_message = "File size exceeds limit (5MB)"


class InternalError(ProfileAPIError):
    pass


class ServiceUnavailableError(ProfileAPIError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Database unavailable"
