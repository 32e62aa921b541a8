"""Error taxonomy shared by the account and record routes.

Every error is an ``HTTPException`` so FastAPI renders it as ``{"detail": ...}``
with the matching status code, whether it is raised from an endpoint, a
dependency or a helper the endpoints call.
"""

from fastapi import HTTPException, status


class TrackerError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request failed.'

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationError(TrackerError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = 'Invalid input.'


class DuplicateUsername(TrackerError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Username already taken.'


class InvalidCredentials(TrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid username or password.'


class NotAuthenticated(TrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Not authenticated.'


class NotFound(TrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'


class NotOwner(TrackerError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have access to this record.'


class DuplicateTest(TrackerError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'An identical test already exists.'


class StorageError(TrackerError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Database unavailable. Please try again later.'
