from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .config import settings
from .convert import escape, dict_to_xml
from .exceptions import InvalidVersion
from .namespaces import MULTIPART_RELATED, NAMESPACES, SCHEMA_TYPES, SOAP_PART_TYPE, VERSIONS
from .part import Part
from .security import HeaderRenderer

InputTag = Union[str, Tuple[str, str], Tuple[str, str, Dict[str, Any]]]


class Envelope:
    """
    SOAP request envelope.

    Holds the version, namespaces, header and body of one request and
    renders them with ``to_xml()``. ``xml`` replaces the whole rendering
    with a caller supplied document. Attachments added with ``add_part()``
    turn the request into a multipart/related message, see
    ``request_message()``.

    >>> soap = Envelope("http://example.com/service", ("wsdl", "authenticate"))
    >>> soap.namespace = "http://v1_0.ws.auth.order.example.com/"
    >>> soap.body = {"user": "me", "password": "secret"}
    """

    def __init__(self, endpoint: Optional[str] = None, input: Optional[InputTag] = None, body: Any = None):
        self.endpoint = endpoint
        self.input = input
        self.body = body
        self.header: Dict[str, Any] = {}
        self.namespaces: Dict[str, str] = {}
        self.namespace: Optional[str] = None
        self.namespace_identifier = "wsdl"
        self.env_namespace = "env"
        self.wsse: Optional[HeaderRenderer] = None
        self.xml: Optional[str] = None
        self.parts_sort_order: List[str] = []
        self._version: Optional[int] = None
        self._parts: List[Part] = []

    @property
    def version(self) -> int:
        """SOAP version, falling back to ``settings.soap_version``."""
        return self._version or settings.soap_version

    @version.setter
    def version(self, version: int) -> None:
        if version not in VERSIONS:
            raise InvalidVersion(f"Invalid SOAP version: {version!r}")
        self._version = version

    # ------------------------------- Rendering -------------------------------
    def complete_namespaces(self) -> Dict[str, str]:
        defaults = dict(SCHEMA_TYPES)
        if self.namespace:
            defaults[f"xmlns:{self.namespace_identifier}"] = self.namespace
        env_key = f"xmlns:{self.env_namespace}" if self.env_namespace else "xmlns"
        defaults[env_key] = NAMESPACES[self.version]
        defaults.update(self.namespaces)
        return defaults

    def header_xml(self) -> str:
        wsse = self.wsse.to_xml() if self.wsse is not None else ""
        return dict_to_xml(self.header) + wsse

    def body_xml(self) -> str:
        if isinstance(self.body, (dict, list)):
            return dict_to_xml(self.body)
        return "" if self.body is None else str(self.body)

    def to_xml(self) -> str:
        if self.xml is not None:
            return self.xml

        attrs = "".join(f' {k}="{escape(v)}"' for k, v in self.complete_namespaces().items())
        out = ['<?xml version="1.0" encoding="UTF-8"?>', f"<{self._env('Envelope')}{attrs}>"]
        header = self.header_xml()
        if header:
            out.append(f"<{self._env('Header')}>{header}</{self._env('Header')}>")
        open_tag, close_tag = self._input_tags()
        out.append(f"<{self._env('Body')}>{open_tag}{self.body_xml()}{close_tag}</{self._env('Body')}>")
        out.append(f"</{self._env('Envelope')}>")
        return "".join(out)

    def _env(self, name: str) -> str:
        return f"{self.env_namespace}:{name}" if self.env_namespace else name

    def _input_tags(self) -> Tuple[str, str]:
        if not self.input:
            return "", ""
        if isinstance(self.input, str):
            name, attrs = self.input, {}
        else:
            prefix, local = self.input[0], self.input[1]
            attrs = self.input[2] if len(self.input) > 2 else {}
            name = f"{prefix}:{local}" if prefix else local
        rendered = "".join(f' {k}="{escape(v)}"' for k, v in attrs.items())
        return f"<{name}{rendered}>", f"</{name}>"

    # ------------------------------- Multipart -------------------------------
    def add_part(self, part: Part) -> None:
        self._parts.append(part)

    def has_parts(self) -> bool:
        return bool(self._parts)

    @property
    def parts(self) -> List[Part]:
        return list(self._parts)

    def request_message(self, sort_order: Optional[Iterable[str]] = None) -> Part:
        """
        multipart/related message with the rendered envelope as first part
        and the attachments after it. Callers check ``has_parts()`` first.
        """
        message = Part(content_type=MULTIPART_RELATED)
        soap_part = Part(self.to_xml(), SOAP_PART_TYPE)
        soap_part.add_content_transfer_encoding()
        message.add_part(soap_part)
        for part in self._parts:
            message.add_part(part)
        message.sort_order = list(sort_order or self.parts_sort_order or [])
        return message
