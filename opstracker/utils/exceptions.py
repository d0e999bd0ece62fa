"""Error kinds surfaced to API callers."""


class OpsTrackerError(Exception):
    """Base error carrying a machine-readable code and an HTTP status."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(OpsTrackerError):
    """Schema violation or invalid reference in a request."""

    code = "BAD_REQUEST"
    status_code = 400


class UnauthorizedError(OpsTrackerError):
    """No caller identity could be resolved."""

    code = "UNAUTHORIZED"
    status_code = 401


class ForbiddenError(OpsTrackerError):
    """Caller lacks the required access mode."""

    code = "FORBIDDEN"
    status_code = 403


class NotFoundError(OpsTrackerError):
    """Referenced record is absent or not visible to the caller."""

    code = "NOT_FOUND"
    status_code = 404
