from __future__ import annotations
from typing import Any, Dict


class SoapError(Exception):
    """Base soapwire error."""


class InvalidVersion(SoapError, ValueError):
    """Unsupported SOAP version."""


class InvalidResponseError(SoapError):
    """Response body is not a parsable SOAP envelope."""
    def __init__(self, message: str, response=None):
        super().__init__(message)
        self.response = response


class SoapFault(SoapError):
    """
    SOAP Fault returned by the server.

    Raised from ``Response`` when errors are enabled, and also handed out by
    ``Response.soap_fault`` as a view over any response. ``present`` tells
    whether the wrapped response actually carries a fault.
    """

    def __init__(self, response):
        super().__init__()
        self.response = response

    @property
    def http(self):
        return self.response.http

    @property
    def present(self) -> bool:
        return self.response.is_soap_fault()

    def to_dict(self) -> Dict[str, Any]:
        fault = self.response.safe_body().get("fault")
        return fault if isinstance(fault, dict) else {}

    @property
    def code(self) -> str:
        fault = self.to_dict()
        if "faultcode" in fault:
            return _text(fault["faultcode"])
        # SOAP 1.2: <Code><Value>..</Value></Code>
        return _text(_dig(fault, "code", "value"))

    @property
    def reason(self) -> str:
        fault = self.to_dict()
        if "faultstring" in fault:
            return _text(fault["faultstring"])
        return _text(_dig(fault, "reason", "text"))

    @property
    def detail(self):
        return self.to_dict().get("detail")

    def __str__(self) -> str:
        if not self.present:
            return ""
        return f"({self.code}) {self.reason}"


class HttpError(SoapError):
    """Non-2xx HTTP response without a SOAP Fault body."""

    def __init__(self, response):
        super().__init__()
        self.response = response

    @property
    def http(self):
        return self.response.http

    @property
    def present(self) -> bool:
        return self.response.is_http_error()

    @property
    def code(self) -> int:
        return self.http.code

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.http.code, "headers": dict(self.http.headers), "body": self.http.text}

    def __str__(self) -> str:
        if not self.present:
            return ""
        body = self.http.text
        return f"HTTP error ({self.code}): {body}" if body else f"HTTP error ({self.code})"


def _dig(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        value = value[0] if value else ""
    if isinstance(value, dict):
        return ""
    return str(value).strip()
