"""Core infrastructure for the SFMC metadata crawler."""

from .config import SFMCConfig, get_config
from .errors import (
    ApiError,
    AuthenticationError,
    CrawlCancelledError,
    CrawlerError,
    ParseError,
    PhaseError,
    RetryExhaustedError,
    SoapFaultError,
    TransportError,
)

__all__ = [
    "SFMCConfig",
    "get_config",
    "ApiError",
    "AuthenticationError",
    "CrawlCancelledError",
    "CrawlerError",
    "ParseError",
    "PhaseError",
    "RetryExhaustedError",
    "SoapFaultError",
    "TransportError",
]
