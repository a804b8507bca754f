"""Error taxonomy for the power usage gateway.

Every error carries the HTTP status it maps to. The request handler turns
them into a generic response; the message is only logged.
"""

from fastapi import status


class PowerUsageError(Exception):
    """Base class for all gateway errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR


class BadRequestError(PowerUsageError):
    """Raised when query parameters are missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class BackendUnreachableError(PowerUsageError):
    """Raised when the metrics backend fails or returns an unusable body."""

    status_code = status.HTTP_502_BAD_GATEWAY


class InternalError(PowerUsageError):
    """Raised when a fixed value the service depends on cannot be built."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
