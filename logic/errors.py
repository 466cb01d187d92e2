from typing import Dict, Optional


class ApiError(Exception):
    """A backend call failed. The user has already been notified once."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class AuthenticationError(ApiError):
    pass


class PermissionDeniedError(ApiError):
    pass


class ServerError(ApiError):
    pass


class RequestError(ApiError):
    """4xx other than 401/403, or a 2xx envelope whose code is not 200."""


class NetworkError(ApiError):
    pass


class ValidationError(Exception):
    """Local form validation failed; nothing was sent to the backend."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors
