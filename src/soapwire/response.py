from __future__ import annotations
import logging
import threading
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional

from .config import settings
from .convert import collect_refs, element_to_dict, local_name, parse, snakecase
from .exceptions import HttpError, InvalidResponseError, SoapFault
from .models import HTTPResponse, Outcome
from .part import Part, parse_multipart

log = logging.getLogger(__name__)


class Response:
    """
    SOAP response.

    Wraps the ``HTTPResponse`` and exposes the envelope as dicts, raw XML
    and an ElementTree document. Multipart bodies are split on first use:
    the first part is the envelope, the rest are attachments. Everything
    derived from the body is computed once, under a lock, and kept.

    With ``raise_errors`` (defaults to ``settings.raise_errors``) the
    constructor raises ``SoapFault`` or ``HttpError`` for failed calls.
    """

    def __init__(self, http: HTTPResponse, raise_errors: Optional[bool] = None):
        self.http = http
        self._lock = threading.Lock()
        self._loaded = False
        self._parts: List[Part] = []
        self._xml = b""
        self._root: Optional[ET.Element] = None
        self._namespaces: Dict[str, str] = {}
        self._envelope: Dict[str, Any] = {}
        self._body: Optional[Dict[str, Any]] = None
        self._header: Dict[str, Any] = {}
        self._parse_error: Optional[str] = None
        self._shape_error: Optional[str] = None

        if settings.raise_errors if raise_errors is None else raise_errors:
            self.raise_for_fault()

    def __repr__(self) -> str:
        return f"<Response [{self.http.code}] {self.classify().value}>"

    # ------------------------------ Classification ------------------------------
    def classify(self) -> Outcome:
        if self.is_soap_fault():
            return Outcome.SOAP_FAULT
        if self.http.error:
            return Outcome.HTTP_ERROR
        return Outcome.SUCCESS

    def is_success(self) -> bool:
        return self.classify() is Outcome.SUCCESS

    def is_soap_fault(self) -> bool:
        return "fault" in self.safe_body()

    def is_http_error(self) -> bool:
        return self.http.error and not self.is_soap_fault()

    @property
    def soap_fault(self) -> SoapFault:
        return SoapFault(self)

    @property
    def http_error(self) -> HttpError:
        return HttpError(self)

    def raise_for_fault(self) -> None:
        outcome = self.classify()
        if outcome is Outcome.SOAP_FAULT:
            raise self.soap_fault
        if outcome is Outcome.HTTP_ERROR:
            raise self.http_error

    # ------------------------------- Structured -------------------------------
    @property
    def body(self) -> Dict[str, Any]:
        self._load()
        self._check(self._parse_error or self._shape_error)
        if self._body is None:
            raise InvalidResponseError("Unable to find the SOAP body", response=self)
        return self._body

    @property
    def header(self) -> Dict[str, Any]:
        self._load()
        self._check(self._parse_error or self._shape_error)
        return self._header

    @property
    def envelope(self) -> Dict[str, Any]:
        """The whole response document as a dict."""
        self._load()
        self._check(self._parse_error)
        return self._envelope

    def safe_body(self) -> Dict[str, Any]:
        """Body dict, or ``{}`` when the response cannot be parsed."""
        self._load()
        return self._body or {}

    def __getitem__(self, key: str) -> Any:
        return self.body[key]

    def to_array(self, *path: str) -> List[Any]:
        """
        Value found by walking ``path`` through the body, as a list.

        A missing key or a ``None`` value gives ``[]``.
        """
        value: Any = self.body
        for key in path:
            if not isinstance(value, dict):
                return []
            value = value.get(key)
        if value is None:
            return []
        return value if isinstance(value, list) else [value]

    # ---------------------------------- Raw ----------------------------------
    def to_xml(self) -> str:
        """Raw SOAP XML (the first part of a multipart response)."""
        self._load()
        return self._xml.decode("utf-8", errors="replace")

    @property
    def doc(self) -> ET.Element:
        self._load()
        self._check(self._parse_error)
        return self._root

    @property
    def namespaces(self) -> Dict[str, str]:
        """Prefixes declared in the response document."""
        self._load()
        return dict(self._namespaces)

    def xpath(self, path: str, namespaces: Optional[Dict[str, str]] = None) -> List[ET.Element]:
        """
        ElementTree path query on the response document.

        Prefixes declared in the document resolve without being passed.
        Paths starting with ``/`` or ``//`` are taken from the document.
        A prefix bound to different URIs in different subtrees resolves to
        its first binding; pass ``namespaces`` to pick another.
        """
        root = self.doc
        ns = dict(self._namespaces)
        ns.update(namespaces or {})
        if path.startswith("/"):
            document = ET.Element("document")
            document.append(root)
            return document.findall("." + path, ns)
        return root.findall(path, ns)

    @property
    def parts(self) -> List[Part]:
        self._load()
        return list(self._parts)

    @property
    def attachments(self) -> List[Part]:
        return self.parts[1:]

    # -------------------------------- Parsing --------------------------------
    def _check(self, error: Optional[str]) -> None:
        if error:
            raise InvalidResponseError(error, response=self)

    def _load(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            try:
                self._demultiplex()
                self._normalize()
            finally:
                self._loaded = True

    def _demultiplex(self) -> None:
        content_type = self.http.headers.get("Content-Type", "")
        parts = parse_multipart(self.http.body, content_type)
        if parts:
            self._parts = parts
            self._xml = parts[0].body
        else:
            if "multipart" in content_type.lower():
                log.debug("Unable to split multipart response, reading it as plain XML")
            self._xml = self.http.body

    def _normalize(self) -> None:
        try:
            root, namespaces = parse(self._xml)
        except ET.ParseError as e:
            log.debug("SOAP response is not parsable: %s", e)
            self._parse_error = f"Unable to parse response body: {e}"
            return

        self._root = root
        self._namespaces = namespaces
        refs = collect_refs(root)
        try:
            self._envelope = {snakecase(local_name(root.tag)): element_to_dict(root, refs)}
        except RecursionError:
            log.debug("SOAP response is nested too deeply to convert")
            self._parse_error = "Unable to parse response body: nested too deeply"
            return

        if local_name(root.tag) != "Envelope":
            self._shape_error = f"Expected a SOAP Envelope, got <{local_name(root.tag)}>"
            return

        for child in root:
            name = local_name(child.tag)
            if name == "Body" and self._body is None:
                self._body = _as_dict(element_to_dict(child, refs))
            elif name == "Header" and not self._header:
                self._header = _as_dict(element_to_dict(child, refs))


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}
