"""Terminal request outcomes, each carrying the HTTP status it maps to."""
from __future__ import annotations
from typing import Optional


class MediatorError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AccessDenied(MediatorError):
    """Disallowed origin (403) or unknown token (401)."""
    status_code = 403


class MethodNotAllowed(MediatorError):
    status_code = 405


class MalformedInput(MediatorError):
    status_code = 400


class RateLimited(MediatorError):
    status_code = 429

    def __init__(self, message: str, retry_after: int = 1) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ConfigurationError(MediatorError):
    status_code = 500


class UpstreamFailure(MediatorError):
    status_code = 502
