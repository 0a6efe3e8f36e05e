from __future__ import annotations
from typing import Any, Dict, Iterable, Mapping, Optional

from .envelope import Envelope
from .models import HTTPRequest
from .namespaces import CONTENT_TYPES
from .part import Part
from .request import Interceptor, Request
from .response import Response
from .security import HeaderRenderer
from .transport import Transport


class Client:
    """
    SOAP client for a single endpoint.

    Features:
    - Envelopes qualified with the service's target namespace.
    - SOAPAction header (SOAP 1.1) or ``action`` Content-Type parameter (SOAP 1.2).
    - Attachments sent as multipart/related.
    - Optional WS-Security header object added to every call.
    """

    def __init__(
        self,
        endpoint: str,
        namespace: Optional[str] = None,
        *,
        version: Optional[int] = None,
        wsse: Optional[HeaderRenderer] = None,
        transport: Optional[Transport] = None,
        interceptor: Optional[Interceptor] = None,
        timeout: int = 30,
        retries: int = 0,
    ):
        self.endpoint = endpoint
        self.namespace = namespace
        self.version = version
        self.wsse = wsse
        self.transport = transport or Transport(timeout=timeout, retries=retries)
        self.interceptor = interceptor

    def envelope(self, operation: str, body: Any = None, header: Optional[Dict[str, Any]] = None) -> Envelope:
        soap = Envelope(self.endpoint, body=body)
        if self.version:
            soap.version = self.version
        if self.namespace:
            soap.namespace = self.namespace
            soap.input = (soap.namespace_identifier, operation)
        else:
            soap.input = operation
        soap.header = dict(header or {})
        soap.wsse = self.wsse
        return soap

    def call(
        self,
        operation: str,
        body: Any = None,
        *,
        header: Optional[Dict[str, Any]] = None,
        soap_action: Optional[str] = None,
        parts: Iterable[Part] = (),
        sort_order: Iterable[str] = (),
        headers: Optional[Mapping[str, str]] = None,
        xml: Optional[str] = None,
    ) -> Response:
        """Build the envelope for ``operation`` and execute it."""
        soap = self.envelope(operation, body, header)
        soap.xml = xml
        for part in parts:
            soap.add_part(part)
        soap.parts_sort_order = list(sort_order)

        http = HTTPRequest(headers=headers)
        action = soap_action if soap_action is not None else operation
        if soap.version == 2 and not soap.has_parts():
            http.headers.setdefault("Content-Type", f'{CONTENT_TYPES[2]};action="{action}"')
        else:
            http.headers.setdefault("SOAPAction", f'"{action}"')

        return Request.execute(http, soap, transport=self.transport, interceptor=self.interceptor)
