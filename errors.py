"""Service error taxonomy.

Each error carries the HTTP status the API answers with. The handlers in
``app.py`` turn them into ``{"error": message}`` bodies.
"""


class ServiceError(Exception):
    """Base class for failures surfaced to the caller."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(ServiceError):
    """Missing or invalid image or prompt."""
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class QuotaExceededError(ServiceError):
    """Anonymous caller used up the per-feature allowance."""
    status_code = 403


class ConfigurationError(ServiceError):
    """Required setting (API token) is missing."""
    status_code = 500


class UpstreamError(ServiceError):
    """The prediction API failed or answered with something unusable."""
    status_code = 500
