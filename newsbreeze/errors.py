"""Error taxonomy for NewsBreeze.

Every failure a handler reports is one of these exceptions. The web layer turns
them into ``{"error": ...}`` JSON bodies with the carried status code.
"""

from typing import Any


class ApiError(Exception):
    """Base class for failures reported to API callers."""

    status_code = 500

    def __init__(
        self, message: str, status_code: int | None = None, details: Any = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ClientInputError(ApiError):
    """The caller sent a malformed request or left out a required field."""

    status_code = 400


class ConfigurationError(ApiError):
    """A credential or URL the endpoint needs is not configured."""


class UpstreamTransportError(ApiError):
    """An upstream service could not be reached."""


class UpstreamServiceError(ApiError):
    """An upstream service answered with a failure."""


class UpstreamShapeError(ApiError):
    """An upstream service answered with a payload of unknown shape."""
