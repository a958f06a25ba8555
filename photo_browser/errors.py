"""
Error taxonomy shared by the server and the client.

Every failure that crosses an operation boundary is one of these classes.
The HTTP layer turns them into a status code plus a JSON body, and the client
turns such a body back into the same class.
"""

from typing import Optional


class BrowserError(Exception):
    """Base class for all photo browser failures."""
    status: int = 500
    kind: str = "internal"

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def to_dict(self) -> dict:
        data = {"error": self.message, "kind": self.kind}
        if self.hint:
            data["hint"] = self.hint
        return data


class InvalidRequest(BrowserError):
    """Missing or malformed request parameter."""
    status = 400
    kind = "invalid_request"


class AccessDenied(BrowserError):
    """Path falls outside the confinement root (or the OS refused access)."""
    status = 403
    kind = "access_denied"


class NotFound(BrowserError):
    status = 404
    kind = "not_found"


class NotADirectory(BrowserError):
    status = 400
    kind = "not_a_directory"


class IsADirectory(BrowserError):
    status = 400
    kind = "is_a_directory"


class UnsupportedType(BrowserError):
    """Thumbnail requested for a file that is not a supported image."""
    status = 400
    kind = "unsupported_type"


class ProcessingError(BrowserError):
    """Image decode, resize or encode failed."""
    status = 500
    kind = "processing_error"


class Internal(BrowserError):
    status = 500
    kind = "internal"


ERROR_KINDS = {
    cls.kind: cls
    for cls in (
        InvalidRequest,
        AccessDenied,
        NotFound,
        NotADirectory,
        IsADirectory,
        UnsupportedType,
        ProcessingError,
        Internal,
    )
}

STATUS_FALLBACK = {
    400: InvalidRequest,
    403: AccessDenied,
    404: NotFound,
}


def error_from_response(status: int, body: Optional[dict]) -> BrowserError:
    """Rebuild an error raised on the server from its HTTP response."""
    if not isinstance(body, dict):
        body = {}
    message = body.get("error") or f"HTTP error {status}"
    cls = ERROR_KINDS.get(body.get("kind", ""))
    if cls is None:
        cls = STATUS_FALLBACK.get(status, Internal)
    return cls(message, hint=body.get("hint"))
