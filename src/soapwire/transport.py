from __future__ import annotations
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .models import HTTPRequest, HTTPResponse


class Transport:
    """
    requests-backed HTTP transport.

    Connection handling, TLS, timeouts and retries live here. 500 is left
    out of the retry statuses because SOAP faults travel as 500.
    Connection errors propagate as ``requests.RequestException``.
    """

    def __init__(
        self,
        timeout: int = 30,
        retries: int = 0,
        backoff: float = 0.5,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        adapter = HTTPAdapter(
            max_retries=Retry(
                total=retries,
                backoff_factor=backoff,
                status_forcelist=(429, 502, 503, 504),
                allowed_methods=frozenset(["POST"]),
                raise_on_status=False,
            )
        )
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def post(self, request: HTTPRequest) -> HTTPResponse:
        resp = self.session.request(
            request.method,
            request.url,
            data=request.data,
            headers=dict(request.headers),
            timeout=self.timeout,
        )
        return HTTPResponse.from_requests(resp)
