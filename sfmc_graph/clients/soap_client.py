"""SOAP API client for SFMC.

Provides XML envelope construction, response parsing, and pagination support
for SFMC's SOAP Retrieve operation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union
from xml.etree import ElementTree as ET
from xml.etree.ElementTree import Element

from ..core.config import SFMCConfig
from ..core.errors import ApiError, AuthenticationError, ParseError, SoapFaultError
from .transport import ApiTransport

logger = logging.getLogger(__name__)

# XML Namespaces
SOAP_ENV = "http://schemas.xmlsoap.org/soap/envelope/"
ET_NS = "http://exacttarget.com/wsdl/partnerAPI"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

# Register namespaces
ET.register_namespace("soap", SOAP_ENV)
ET.register_namespace("", ET_NS)
ET.register_namespace("xsi", XSI_NS)

OK_STATUSES = ("OK", "MoreDataAvailable")

# Fault strings SFMC uses when the fueloauth token is bad or expired
AUTH_FAULT_MARKERS = ("login failed", "token expired", "invalid token", "unauthorized", "not authorized")


@dataclass
class SimpleFilter:
    """Single property comparison (rendered as SimpleFilterPart)."""

    property: str
    operator: str
    value: Union[str, list[str]]


@dataclass
class ComplexFilter:
    """Two filters joined by AND/OR (rendered as ComplexFilterPart)."""

    left: "FilterNode"
    logical_operator: str
    right: "FilterNode"


FilterNode = Union[SimpleFilter, ComplexFilter]


def filter_from_dict(data: dict[str, Any]) -> FilterNode:
    """Build a filter tree from its dict form.

    ``{"property", "operator", "value"}`` is a simple filter and
    ``{"left", "logicalOperator", "right"}`` a complex one; operands nest.
    """
    if "left" in data and "right" in data:
        return ComplexFilter(
            left=filter_from_dict(data["left"]),
            logical_operator=data.get("logicalOperator", "AND"),
            right=filter_from_dict(data["right"]),
        )
    if "property" in data:
        return SimpleFilter(
            property=data["property"],
            operator=data.get("operator", "equals"),
            value=data.get("value", ""),
        )
    raise ValueError(f"Unrecognized filter shape: {sorted(data)}")


def build_filter(node: Union[FilterNode, dict[str, Any]], tag: str = "Filter") -> Element:
    """Render a filter tree recursively.

    Args:
        node: Filter node or its dict form.
        tag: Element name; operands of a complex filter use
            LeftOperand/RightOperand.

    Returns:
        Filter element.
    """
    if isinstance(node, dict):
        node = filter_from_dict(node)

    filter_elem = ET.Element(f"{{{ET_NS}}}{tag}")

    if isinstance(node, ComplexFilter):
        filter_elem.set(f"{{{XSI_NS}}}type", "ComplexFilterPart")
        filter_elem.append(build_filter(node.left, "LeftOperand"))
        logical = ET.SubElement(filter_elem, f"{{{ET_NS}}}LogicalOperator")
        logical.text = node.logical_operator
        filter_elem.append(build_filter(node.right, "RightOperand"))
        return filter_elem

    filter_elem.set(f"{{{XSI_NS}}}type", "SimpleFilterPart")

    prop = ET.SubElement(filter_elem, f"{{{ET_NS}}}Property")
    prop.text = node.property

    op = ET.SubElement(filter_elem, f"{{{ET_NS}}}SimpleOperator")
    op.text = node.operator

    values = node.value if isinstance(node.value, list) else [node.value]
    for value in values:
        val = ET.SubElement(filter_elem, f"{{{ET_NS}}}Value")
        val.text = str(value)

    return filter_elem


def env_with_oauth(access_token: str) -> Element:
    """Build a SOAP envelope with the fueloauth token in the header.

    Returns:
        Element: SOAP Envelope with fueloauth header and empty Body.
    """
    envelope = ET.Element(f"{{{SOAP_ENV}}}Envelope")

    header = ET.SubElement(envelope, f"{{{SOAP_ENV}}}Header")
    fueloauth = ET.SubElement(header, f"{{{ET_NS}}}fueloauth")
    fueloauth.text = access_token

    ET.SubElement(envelope, f"{{{SOAP_ENV}}}Body")

    return envelope


def _serialize(envelope: Element) -> str:
    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True).decode("utf-8")


def build_retrieve_envelope(
    object_type: str,
    properties: list[str],
    filter: Optional[Union[FilterNode, dict[str, Any]]] = None,
    *,
    access_token: str = "",
) -> str:
    """Build a complete SOAP Retrieve envelope.

    Args:
        object_type: SFMC object type (e.g., "DataExtension", "DataFolder").
        properties: Property names to retrieve.
        filter: Optional simple or complex filter.
        access_token: Token for the fueloauth header.

    Returns:
        XML string ready to POST.
    """
    envelope = env_with_oauth(access_token)
    body = envelope.find(f"{{{SOAP_ENV}}}Body")

    msg = ET.SubElement(body, f"{{{ET_NS}}}RetrieveRequestMsg")  # type: ignore[arg-type]
    req = ET.SubElement(msg, f"{{{ET_NS}}}RetrieveRequest")

    obj_type = ET.SubElement(req, f"{{{ET_NS}}}ObjectType")
    obj_type.text = object_type

    for prop in properties:
        prop_elem = ET.SubElement(req, f"{{{ET_NS}}}Properties")
        prop_elem.text = prop

    if filter is not None:
        req.append(build_filter(filter))

    return _serialize(envelope)


def build_continue_envelope(request_id: str, *, access_token: str = "") -> str:
    """Build a Retrieve envelope that continues a paged result set."""
    envelope = env_with_oauth(access_token)
    body = envelope.find(f"{{{SOAP_ENV}}}Body")

    msg = ET.SubElement(body, f"{{{ET_NS}}}RetrieveRequestMsg")  # type: ignore[arg-type]
    req = ET.SubElement(msg, f"{{{ET_NS}}}RetrieveRequest")
    continue_req = ET.SubElement(req, f"{{{ET_NS}}}ContinueRequest")
    continue_req.text = request_id

    return _serialize(envelope)


@dataclass
class RetrieveResult:
    """One page of a Retrieve response."""

    records: list[dict[str, Any]] = field(default_factory=list)
    overall_status: Optional[str] = None
    request_id: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.overall_status == "MoreDataAvailable" and bool(self.request_id)


def _local_name(tag: str) -> str:
    return tag.split("}")[-1] if "}" in tag else tag


def _find_child(parent: Element, name: str) -> Optional[Element]:
    """Find a direct child with or without the partner API namespace."""
    found = parent.find(f"{{{ET_NS}}}{name}")
    if found is None:
        found = parent.find(name)
    return found


def _element_to_dict(element: Element) -> dict[str, Any]:
    """Convert an XML element to a dictionary recursively.

    Leaf elements become their text; repeated tags become lists.
    """
    result: dict[str, Any] = {}

    for key, value in element.attrib.items():
        result[f"@{_local_name(key)}"] = value

    for child in element:
        tag = _local_name(child.tag)
        value = child.text if len(child) == 0 else _element_to_dict(child)

        if tag in result:
            if not isinstance(result[tag], list):
                result[tag] = [result[tag]]
            result[tag].append(value)
        else:
            result[tag] = value

    return result


def raise_for_fault(fault: Element, status_code: int = 0) -> None:
    """Raise the error matching a SOAP Fault element."""
    fault_string = None
    fault_code = None
    for child in fault:
        name = _local_name(child.tag)
        if name == "faultstring":
            fault_string = (child.text or "").strip()
        elif name == "faultcode":
            fault_code = (child.text or "").strip()

    message = fault_string or "SOAP Fault"
    lowered = f"{fault_code or ''} {message}".lower()
    if any(marker in lowered for marker in AUTH_FAULT_MARKERS) or "security" in (fault_code or "").lower():
        raise AuthenticationError(
            f"SOAP authentication fault: {message}",
            status_code=status_code or 401,
        )
    raise SoapFaultError(f"SOAP Fault: {message}", status_code=status_code)


def _parse_body(response_xml: str, object_type: Optional[str]) -> Element:
    try:
        root = ET.fromstring(response_xml)
    except ET.ParseError as e:
        raise ParseError(f"XML parse error: {e}", object_type=object_type) from e

    body = root.find(f"{{{SOAP_ENV}}}Body")
    if body is None:
        body = root.find(f".//{{{SOAP_ENV}}}Body")
    if body is None:
        raise ParseError("No SOAP Body found", object_type=object_type)

    return body


def parse_retrieve_envelope(response_xml: str, object_type: Optional[str] = None) -> RetrieveResult:
    """Parse a SOAP RetrieveResponse.

    Args:
        response_xml: Raw XML response string.
        object_type: Object type being retrieved, for error context.

    Returns:
        RetrieveResult with records always as a list.

    Raises:
        ParseError: Structurally malformed response.
        AuthenticationError: Fault reporting a login/token failure.
        SoapFaultError: Any other fault, or an error OverallStatus.
    """
    body = _parse_body(response_xml, object_type)

    fault = body.find(f"{{{SOAP_ENV}}}Fault")
    if fault is not None:
        raise_for_fault(fault)

    response_msg = _find_child(body, "RetrieveResponseMsg")
    if response_msg is None:
        raise ParseError("No RetrieveResponseMsg in SOAP Body", object_type=object_type)

    result = RetrieveResult()

    status = _find_child(response_msg, "OverallStatus")
    if status is not None and status.text:
        result.overall_status = status.text.strip()

    req_id = _find_child(response_msg, "RequestID")
    if req_id is not None and req_id.text:
        result.request_id = req_id.text.strip()

    if result.overall_status and result.overall_status not in OK_STATUSES:
        raise SoapFaultError(
            f"Retrieve of {object_type or 'objects'} returned status: {result.overall_status}"
        )

    objects = response_msg.findall(f"{{{ET_NS}}}Results")
    if not objects:
        objects = response_msg.findall("Results")
    result.records = [_element_to_dict(obj) for obj in objects]

    return result


def parse_retrieve_response(response_xml: str, object_type: Optional[str] = None) -> list[dict[str, Any]]:
    """Parse a RetrieveResponse into its records (empty list when none)."""
    return parse_retrieve_envelope(response_xml, object_type).records


class SOAPClient:
    """SOAP API client for SFMC.

    All requests go through the shared transport, so they count toward the
    crawl statistics and inherit its retry policy.
    """

    def __init__(self, config: SFMCConfig, transport: ApiTransport):
        """Initialize the SOAP client.

        Args:
            config: SFMC configuration.
            transport: Shared transport.
        """
        self._config = config
        self._transport = transport
        self._debug = config.soap_debug
        self._max_pages = config.soap_max_pages

    @property
    def endpoint(self) -> str:
        """Get the SOAP API endpoint URL."""
        return self._config.soap_url

    def _log_request(self, xml: str) -> None:
        """Log request XML if debug is enabled."""
        if self._debug:
            logger.debug(f"SOAP Request:\n{xml}")

    def _log_response(self, xml: str) -> None:
        """Log response XML if debug is enabled."""
        if self._debug:
            logger.debug(f"SOAP Response:\n{xml[:2000]}")

    async def post(self, envelope_xml: str, object_type: str) -> RetrieveResult:
        """POST one Retrieve envelope and parse the response page."""
        self._log_request(envelope_xml)

        try:
            response = await self._transport.call(
                self.endpoint,
                method="POST",
                content=envelope_xml.encode("utf-8"),
                headers={
                    "Content-Type": "text/xml; charset=utf-8",
                    "SOAPAction": "Retrieve",
                },
            )
        except ApiError as e:
            # SFMC reports faults (including bad tokens) as HTTP 500 with a Fault body
            if e.status_code == 500 and e.body and "Fault" in e.body:
                body = _parse_body(e.body, object_type)
                fault = body.find(f"{{{SOAP_ENV}}}Fault")
                if fault is not None:
                    raise_for_fault(fault, e.status_code)
            raise

        self._log_response(response.text)

        try:
            return parse_retrieve_envelope(response.text, object_type)
        except ParseError:
            logger.error(f"Malformed SOAP response while retrieving {object_type}")
            raise

    async def retrieve(
        self,
        object_type: str,
        properties: list[str],
        filter: Optional[Union[FilterNode, dict[str, Any]]] = None,
        max_pages: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """Retrieve all pages of objects of one type.

        Args:
            object_type: SFMC object type to retrieve.
            properties: List of properties to retrieve.
            filter: Optional simple or complex filter.
            max_pages: Maximum number of pages. Defaults to config value.

        Returns:
            Combined records from every page.
        """
        if max_pages is None:
            max_pages = self._max_pages
        token = self._config.fueloauth_token

        envelope = build_retrieve_envelope(object_type, properties, filter, access_token=token)
        page = await self.post(envelope, object_type)
        records = list(page.records)
        pages = 1

        while page.has_more and pages < max_pages:
            pages += 1
            envelope = build_continue_envelope(page.request_id or "", access_token=token)
            page = await self.post(envelope, object_type)
            records.extend(page.records)

        if page.has_more:
            logger.warning(f"Stopped {object_type} retrieval at page limit {max_pages}")

        logger.debug(f"Retrieved {len(records)} {object_type} records in {pages} page(s)")
        return records
