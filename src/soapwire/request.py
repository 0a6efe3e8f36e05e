from __future__ import annotations
import logging
from typing import Callable, Optional

from .config import settings
from .envelope import Envelope
from .models import HTTPRequest, HTTPResponse
from .namespaces import CONTENT_TYPES
from .response import Response
from .security import sanitize_headers, scrub_xml
from .transport import Transport

log = logging.getLogger(__name__)

# Returns a response to use instead of calling the transport, or None.
Interceptor = Callable[["Request"], Optional[HTTPResponse]]


class Request:
    """
    Executes one SOAP request.

    Puts the rendered envelope (or a multipart/related message when the
    envelope has attachments) on the ``HTTPRequest``, sends it through the
    transport and wraps what comes back in a ``Response``. An
    ``interceptor`` may answer instead of the transport.
    """

    def __init__(
        self,
        http: HTTPRequest,
        soap: Envelope,
        transport: Optional[Transport] = None,
        interceptor: Optional[Interceptor] = None,
    ):
        self.soap = soap
        self.http = self.setup(http, soap)
        self.transport = transport or Transport()
        self.interceptor = interceptor
        self._response: Optional[Response] = None

    @classmethod
    def execute(cls, http: HTTPRequest, soap: Envelope, **kwargs) -> Response:
        return cls(http, soap, **kwargs).response

    @property
    def response(self) -> Response:
        if self._response is None:
            raw = self.interceptor(self) if self.interceptor else None
            if raw is None:
                raw = self._send()
            self._response = Response(raw)
        return self._response

    @staticmethod
    def setup(http: HTTPRequest, soap: Envelope) -> HTTPRequest:
        http.url = soap.endpoint
        if soap.has_parts():
            message = soap.request_message()
            for name, value in message.header_fields().items():
                if name.lower() == "content-type":
                    http.headers.setdefault("Content-Type", value)
                else:
                    http.headers[name] = value
            http.headers.setdefault("MIME-Version", "1.0")
            http.body = message.encoded_body()
        else:
            http.headers.setdefault("Content-Type", CONTENT_TYPES[soap.version])
            http.body = soap.to_xml()
        return http

    def _send(self) -> HTTPResponse:
        self._log_request()
        raw = self.transport.post(self.http)
        if log.isEnabledFor(logging.DEBUG):
            log.debug("SOAP response (status %s):", raw.code)
            log.debug(raw.text)
        return raw

    def _log_request(self) -> None:
        if not log.isEnabledFor(logging.DEBUG):
            return
        body = self.http.body
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        log.debug("SOAP request: %s", self.http.url)
        log.debug(", ".join(f"{k}: {v}" for k, v in sanitize_headers(self.http.headers).items()))
        log.debug(scrub_xml(body or "", settings.log_filter))
