from typing import Optional


class PtvTimetableError(Exception):
    """
    Raised when the PTV API could not be reached or answered with a non-success status.

    `status_code` and `reason_phrase` stay None when no response was received
    (DNS failure, refused connection, timeout...). The underlying httpx exception
    is kept in `cause` and chained as `__cause__`.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
        reason_phrase: Optional[str] = None,
        request_uri: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.request_uri = request_uri

    def __str__(self) -> str:
        if self.status_code is None:
            return f"{self.message} ({self.request_uri})"
        return f"{self.message} (status={self.status_code} {self.reason_phrase or ''}, uri={self.request_uri})"


class LineMapFormatError(RuntimeError):
    """The line page no longer contains the route-map image. Upstream markup changed; do not retry."""


class PtvConfigurationError(ValueError):
    """Raised when credentials are missing from the environment."""
