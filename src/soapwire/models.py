from __future__ import annotations
import enum
from typing import Mapping, Optional, Union

import requests
from requests.structures import CaseInsensitiveDict


class Outcome(enum.Enum):
    SUCCESS = "success"
    SOAP_FAULT = "soap_fault"
    HTTP_ERROR = "http_error"


class HTTPRequest:
    """Request descriptor handed to the transport."""

    def __init__(
        self,
        url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Union[str, bytes, None] = None,
        method: str = "POST",
    ):
        self.url = url
        self.headers = CaseInsensitiveDict(headers or {})
        self.body = body
        self.method = method

    @property
    def data(self) -> bytes:
        if self.body is None:
            return b""
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    def __repr__(self) -> str:
        return f"<HTTPRequest {self.method} {self.url}>"


class HTTPResponse:
    """Status code, headers and raw body bytes as received."""

    def __init__(self, code: int, headers: Optional[Mapping[str, str]] = None, body: Union[str, bytes, None] = b""):
        self.code = int(code)
        self.headers = CaseInsensitiveDict(headers or {})
        if body is None:
            body = b""
        self.body = body.encode("utf-8") if isinstance(body, str) else bytes(body)

    @classmethod
    def from_requests(cls, resp: requests.Response) -> "HTTPResponse":
        return cls(resp.status_code, resp.headers, resp.content)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def error(self) -> bool:
        return not 200 <= self.code < 300

    def __repr__(self) -> str:
        return f"<HTTPResponse [{self.code}]>"
