"""
Exception types shared by the blog services.

The hierarchy mirrors how failures surface to callers:

- ``ValidationError``: bad input, rejected before any side effect (HTTP 400)
- ``NotFoundError``: the requested record does not exist (HTTP 404)
- ``AuthorizationError``: the caller is not a signed-in admin (HTTP 401)
- ``DependencyError``: the database or another collaborator failed and the
  operation could not be completed (HTTP 500)
- ``DeliveryError``: a single email could not be delivered; broadcast loops
  catch it per recipient and count it as a failure
- ``LoggingError``: the newsletter send log could not be written; reported in
  the application log and never surfaced to the caller
- ``StorageError``: an uploaded image could not be stored
"""

from typing import Any, Dict, Optional


class BlogError(Exception):
    """Base class for errors raised by blog services."""

    status_code = 500
    code = 'error'

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {'error': self.message}


class ValidationError(BlogError):
    status_code = 400
    code = 'validation_error'


class NotFoundError(BlogError):
    status_code = 404
    code = 'not_found'


class AuthorizationError(BlogError):
    status_code = 401
    code = 'unauthorized'


class DependencyError(BlogError):
    status_code = 500
    code = 'dependency_error'


class DeliveryError(BlogError):
    """Raised by an email transport when one message could not be delivered."""

    status_code = 502
    code = 'delivery_error'

    def __init__(self, message: str, recipient: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.recipient = recipient


class LoggingError(BlogError):
    code = 'logging_error'


class StorageError(BlogError):
    code = 'storage_error'
