"""
Error taxonomy shared by services and routes.

Services raise these exceptions; route handlers translate them into `HTTPException`
with the carried status code and message.
"""

from typing import Iterable, Optional

from pydantic import ValidationError as PydanticValidationError


class BlogError(Exception):
    """Base class for all expected, user-facing failures."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BlogError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(BlogError):
    status_code = 401
    default_message = "Not authenticated"


class InvalidCredentials(BlogError):
    status_code = 401
    default_message = "Invalid username or password"


class NotFound(BlogError):
    status_code = 404
    default_message = "Not found"


class Conflict(BlogError):
    status_code = 400
    default_message = "Resource already exists"


class InvalidFile(BlogError):
    status_code = 400
    default_message = "Invalid file"


class ServerError(BlogError):
    status_code = 500


def format_validation_errors(errors: Iterable[dict]) -> str:
    """Render pydantic error dicts as `field: reason` pairs."""
    parts = []
    for error in errors:
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location or 'payload'}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


def from_pydantic(exc: PydanticValidationError) -> ValidationError:
    """Convert a pydantic validation failure into the taxonomy `ValidationError`."""
    return ValidationError(format_validation_errors(exc.errors()))
