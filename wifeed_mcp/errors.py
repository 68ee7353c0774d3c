"""
Error taxonomy for the WiFeed MCP server.

Every error raised below is caught at the tool boundary (see tooling.py) and
turned into an error payload; none of them terminates the process.
"""

from typing import Optional


class WiFeedError(Exception):
    """Base class for all errors surfaced to tool callers."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(WiFeedError):
    """A required setting (the API key) is missing."""


class ParameterValidationError(WiFeedError):
    """Caller input failed schema validation; no request was sent."""


# ----------------------------------------------------------------------------
# Upstream API failures
# ----------------------------------------------------------------------------

class WiFeedAPIError(WiFeedError):
    """Base class for failures of the outbound WiFeed request."""


class AuthenticationError(WiFeedAPIError):
    def __init__(self) -> None:
        super().__init__(
            "Authentication failed. Please check your WiFeed API key.",
            status_code=401,
        )


class ForbiddenError(WiFeedAPIError):
    def __init__(self) -> None:
        super().__init__(
            "Access denied. Your API key may not have permission for this endpoint.",
            status_code=403,
        )


class EndpointNotFoundError(WiFeedAPIError):
    def __init__(self, endpoint: str) -> None:
        self.endpoint = endpoint
        super().__init__(
            f"Endpoint not found: {endpoint}. Please verify the stock code or parameters.",
            status_code=404,
        )


class RateLimitError(WiFeedAPIError):
    def __init__(self) -> None:
        super().__init__(
            "Rate limit exceeded. Please wait before making more requests.",
            status_code=429,
        )


class UpstreamServerError(WiFeedAPIError):
    def __init__(self, status_code: int, reason: str = "") -> None:
        super().__init__(
            f"WiFeed server error ({status_code}): {reason}. Please try again later.",
            status_code=status_code,
        )


class UpstreamProtocolError(WiFeedAPIError):
    def __init__(self, detail: str, status_code: Optional[int] = None) -> None:
        status = status_code if status_code is not None else "unknown"
        super().__init__(
            f"WiFeed API error: {detail}. Status: {status}",
            status_code=status_code,
        )


class UnexpectedError(WiFeedAPIError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Unexpected error: {detail}")
