from __future__ import annotations

from typing import Optional


class SnapsetLoaderError(RuntimeError):
    """Base error for the snapset data loader."""
    pass


class UsageError(SnapsetLoaderError):
    """Raised when the command line is missing or has malformed arguments."""
    pass


class RequestFailed(SnapsetLoaderError):
    """Raised when the database answers with an HTTP status of 400 or above."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        status_text: str = "",
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.reason = reason


class TransportError(SnapsetLoaderError):
    """Raised when no response could be obtained, or the response stream broke."""

    def __init__(self, message: str, *, cause: str = "") -> None:
        super().__init__(message)
        self.cause = cause


class FilesystemError(SnapsetLoaderError):
    """Raised when a data directory or one of its files cannot be read."""

    def __init__(self, message: str, *, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class ParseError(SnapsetLoaderError):
    """Raised when a data file or a response body is not the expected JSON."""

    def __init__(self, message: str, *, source: str = "") -> None:
        super().__init__(message)
        self.source = source
