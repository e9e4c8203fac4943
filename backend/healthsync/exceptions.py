class HealthSyncError(Exception):
    """Base error rendered as ``{"error": ...}`` with ``status_code``."""

    status_code = 500

    def __init__(self, error: str, details: dict = None):
        self.error = error
        self.details = details or {}
        super().__init__(error)


class Unauthorized(HealthSyncError):
    status_code = 401


class Forbidden(HealthSyncError):
    status_code = 403


class NotFound(HealthSyncError):
    status_code = 404


class ValidationError(HealthSyncError):
    status_code = 400


class Conflict(HealthSyncError):
    status_code = 409


class ServiceUnavailable(HealthSyncError):
    status_code = 503


class UpstreamError(HealthSyncError):
    status_code = 502


class UpstreamTimeout(UpstreamError):
    status_code = 504
