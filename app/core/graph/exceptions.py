"""Microsoft Graph exceptions for error handling."""
from __future__ import annotations

# Graph error codes this application reacts to
REQUEST_RESOURCE_NOT_FOUND = "Request_ResourceNotFound"
REQUEST_DENIED = "Authorization_RequestDenied"
INVALID_AUTHENTICATION_TOKEN = "InvalidAuthenticationToken"


class GraphError(Exception):
    """Base exception for all Graph operations."""
    pass


class GraphAPIError(GraphError):
    """HTTP error returned by the Graph REST API.

    Attributes:
        status_code: HTTP status code
        code: Graph error code from the error envelope (e.g. "Request_ResourceNotFound")
        message: Human-readable message from the error envelope
        endpoint: URL that failed
    """

    def __init__(self, status_code: int, code: str, message: str, endpoint: str = ""):
        self.status_code = status_code
        self.code = code or ""
        self.message = message or ""
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {self.code}: {self.message}")

    def is_match(self, code: str) -> bool:
        """Return True if the Graph error code matches (case-insensitive)."""
        return self.code.lower() == code.lower()

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_request_denied(self) -> bool:
        return self.is_match(REQUEST_DENIED)


class DirectoryObjectTypeError(GraphError):
    """A directory object could not be narrowed to the expected variant."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected directory object of type '{expected}', got '{actual}'")


class UntrustedPageLinkError(GraphError):
    """A continuation link does not point at the configured Graph endpoint."""
    pass


class GraphTransportError(GraphError):
    """Graph could not be reached, or answered with a body that is not JSON.

    Attributes:
        message: Human-readable description of the failure
        endpoint: URL that failed
    """

    def __init__(self, message: str, endpoint: str = ""):
        self.message = message
        self.endpoint = endpoint
        super().__init__(message)
