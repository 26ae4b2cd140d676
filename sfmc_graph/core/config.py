"""Configuration management for the SFMC metadata crawler.

Loads configuration from environment variables with .env file support.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

# Load .env file from project root
_env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_optional_float(name: str) -> Optional[float]:
    value = os.environ.get(name, "").strip()
    return float(value) if value else None


@dataclass
class SFMCConfig:
    """SFMC API configuration.

    The crawler never acquires tokens itself: it is handed a subdomain and a
    currently valid bearer token (plus an optional distinct SOAP token).
    """

    subdomain: str
    access_token: str
    soap_token: Optional[str] = None
    max_retries: int = 3
    retry_delay: float = 1.0  # Base delay in seconds, doubled per attempt
    max_retry_delay: float = 60.0
    timeout: float = 45.0  # Per-request timeout in seconds
    page_size: int = 500
    max_pages: int = 100  # Maximum pages for REST pagination
    soap_max_pages: int = 100  # Maximum pages for SOAP pagination
    max_concurrent: int = 5
    crawl_timeout: Optional[float] = None  # Whole-crawl deadline in seconds
    fetch_journey_details: bool = True
    soap_debug: bool = False
    rest_debug: bool = False

    @property
    def rest_url(self) -> str:
        """REST API base URL."""
        return f"https://{self.subdomain}.rest.marketingcloudapis.com"

    @property
    def soap_url(self) -> str:
        """SOAP API endpoint URL."""
        return f"https://{self.subdomain}.soap.marketingcloudapis.com/Service.asmx"

    @property
    def fueloauth_token(self) -> str:
        """Token placed in the SOAP fueloauth header."""
        return self.soap_token or self.access_token

    def with_overrides(self, **overrides: Any) -> "SFMCConfig":
        """Return a copy with the given non-None fields replaced."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    def validate(self) -> list[str]:
        """Validate required configuration fields.

        Returns:
            List of validation error messages, empty if valid.
        """
        errors = []
        if not self.subdomain:
            errors.append("SFMC_SUBDOMAIN is required")
        if not self.access_token:
            errors.append("SFMC_ACCESS_TOKEN is required")
        if self.max_retries < 0:
            errors.append("SFMC_MAX_RETRIES must not be negative")
        if self.max_concurrent < 1:
            errors.append("SFMC_MAX_CONCURRENT must be at least 1")
        if self.crawl_timeout is not None and self.crawl_timeout <= 0:
            errors.append("SFMC_CRAWL_TIMEOUT must be positive")
        return errors


def get_config() -> SFMCConfig:
    """Load configuration from environment variables.

    Returns:
        SFMCConfig instance populated from environment.
    """
    return SFMCConfig(
        subdomain=os.environ.get("SFMC_SUBDOMAIN", ""),
        access_token=os.environ.get("SFMC_ACCESS_TOKEN", ""),
        soap_token=os.environ.get("SFMC_SOAP_TOKEN") or None,
        max_retries=int(os.environ.get("SFMC_MAX_RETRIES", "3")),
        retry_delay=float(os.environ.get("SFMC_RETRY_DELAY", "1.0")),
        max_retry_delay=float(os.environ.get("SFMC_MAX_RETRY_DELAY", "60")),
        timeout=float(os.environ.get("SFMC_TIMEOUT", "45")),
        page_size=int(os.environ.get("SFMC_PAGE_SIZE", "500")),
        max_pages=int(os.environ.get("SFMC_MAX_PAGES", "100")),
        soap_max_pages=int(os.environ.get("SFMC_SOAP_MAX_PAGES", "100")),
        max_concurrent=int(os.environ.get("SFMC_MAX_CONCURRENT", "5")),
        crawl_timeout=_env_optional_float("SFMC_CRAWL_TIMEOUT"),
        fetch_journey_details=_env_bool("SFMC_FETCH_JOURNEY_DETAILS", True),
        soap_debug=_env_bool("SFMC_SOAP_DEBUG"),
        rest_debug=_env_bool("SFMC_REST_DEBUG"),
    )
