"""Exception hierarchy for the SFMC metadata crawler.

Callers get either a complete graph or one of these errors carrying enough
context (phase name, underlying message) to report which step failed.
"""

from typing import Optional


class CrawlerError(Exception):
    """Base class for every error raised by the crawler."""

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.phase = phase

    def __str__(self) -> str:
        if self.phase:
            return f"[{self.phase}] {self.message}"
        return self.message


class TransportError(CrawlerError):
    """A request could not be completed."""


class ApiError(TransportError):
    """Non-retryable HTTP error response."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        body: Optional[str] = None,
        phase: Optional[str] = None,
    ):
        super().__init__(message, phase)
        self.status_code = status_code
        self.body = body


class AuthenticationError(ApiError):
    """The token was rejected; the caller must re-authenticate."""

    reauth_required = True


class SoapFaultError(ApiError):
    """SOAP Fault or a non-OK OverallStatus in a SOAP response."""


class RetryExhaustedError(TransportError):
    """Transient failures persisted past the configured retry ceiling."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_status: Optional[int] = None,
        phase: Optional[str] = None,
    ):
        super().__init__(message, phase)
        self.attempts = attempts
        self.last_status = last_status


class ParseError(CrawlerError):
    """Response body is structurally malformed. Never retried."""

    def __init__(
        self,
        message: str,
        object_type: Optional[str] = None,
        phase: Optional[str] = None,
    ):
        super().__init__(message, phase)
        self.object_type = object_type


class PhaseError(CrawlerError):
    """Unexpected failure inside a crawl phase."""

    def __init__(self, phase: str, cause: BaseException):
        super().__init__(f"{type(cause).__name__}: {cause}", phase)
        self.cause = cause


class CrawlCancelledError(CrawlerError):
    """The crawl was cancelled or ran past its deadline."""
