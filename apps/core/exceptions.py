"""
Domain errors shared by the document, contact, emergency access and audit apps.

Every error carries a stable machine-readable ``code`` and the HTTP status the
API layer answers with, so views can turn any of them into the same
``{"error": ..., "code": ...}`` payload.
"""
from rest_framework import status
from rest_framework.response import Response


class AerialNestError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'error'

    def __init__(self, message, code=None, details=None):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AerialNestError):
    """Bad input shape, or a reference to a contact/document the owner doesn't have."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'validation_error'


class AuthorizationError(AerialNestError):
    """Actor lacks the rights to decide or access."""
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'not_authorized'


class StateError(AerialNestError):
    """Illegal transition, e.g. deciding a request that is no longer pending."""
    status_code = status.HTTP_409_CONFLICT
    default_code = 'invalid_state'


class NotFoundError(AerialNestError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = 'not_found'


class StorageError(AerialNestError):
    """Persistence layer failure."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = 'storage_unavailable'


def error_response(exc):
    payload = {"error": exc.message, "code": exc.code}
    if exc.details:
        payload["details"] = exc.details
    return Response(payload, status=exc.status_code)
