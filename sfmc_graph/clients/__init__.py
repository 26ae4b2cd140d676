"""API clients for SFMC REST and SOAP APIs."""

from .rest_client import RESTClient
from .soap_client import (
    ComplexFilter,
    SimpleFilter,
    SOAPClient,
    build_retrieve_envelope,
    parse_retrieve_response,
)
from .transport import ApiTransport, TransportStats

__all__ = [
    "ApiTransport",
    "TransportStats",
    "RESTClient",
    "SOAPClient",
    "SimpleFilter",
    "ComplexFilter",
    "build_retrieve_envelope",
    "parse_retrieve_response",
]
