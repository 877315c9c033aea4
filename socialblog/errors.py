"""
Errors raised by the engagement engine.

They subclass DRF's APIException so the API views can let them propagate and
the default exception handler renders the matching status code.

- NotFound: a referenced user, blog, comment or notification does not exist.
- Forbidden: a visibility or ownership check failed.
- Conflict: the requested state change does not match the current state
  (already liked, not following, request no longer pending, self-follow).
- Unauthenticated: a mutating operation was attempted without a viewer.
- StorageError: the database failed; nothing is retried.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class EngagementError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be completed."
    default_code = "engagement_error"


class NotFound(EngagementError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class Forbidden(EngagementError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have access to this content."
    default_code = "forbidden"


class Conflict(EngagementError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state."
    default_code = "conflict"


class Unauthenticated(EngagementError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Please log in to continue."
    default_code = "not_authenticated"


class StorageError(EngagementError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage is temporarily unavailable."
    default_code = "storage_error"
