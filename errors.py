"""
Error types raised by the Space Explorer API and their HTTP status mapping.
"""

from typing import Optional

UNAVAILABLE_MESSAGE = "External service unavailable"
RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again later."
FORBIDDEN_MESSAGE = "NASA API access forbidden. Please check your API key."
TOO_MANY_REQUESTS_MESSAGE = "Too many requests from this IP, please try again later."


class ApiError(Exception):
    """Base error carrying the HTTP status it should be answered with."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def public_message(self) -> str:
        return self.message


class ValidationError(ApiError):
    status_code = 400


class UpstreamError(ApiError):
    """
    A third-party API call failed.

    Attributes:
        upstream_status: HTTP status returned by the upstream, if any
        unreachable: True when the host could not be resolved or connected to
        generic_message: answer 503/429/403 with a fixed message instead of
            the failure detail
    """

    def __init__(self, message: str, upstream_status: Optional[int] = None,
                 unreachable: bool = False, generic_message: bool = True):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.unreachable = unreachable
        self.generic_message = generic_message
        self.status_code = status_for_upstream(upstream_status, unreachable)

    @property
    def public_message(self) -> str:
        if not self.generic_message:
            return self.message
        if self.unreachable:
            return UNAVAILABLE_MESSAGE
        if self.upstream_status == 429:
            return RATE_LIMITED_MESSAGE
        if self.upstream_status == 403:
            return FORBIDDEN_MESSAGE
        return self.message


def status_for_upstream(upstream_status: Optional[int], unreachable: bool) -> int:
    """Map an upstream failure onto the status this service answers with."""
    if unreachable:
        return 503
    if upstream_status in (429, 403):
        return upstream_status
    return 500
