"""MIME parts for multipart/related SOAP messages (SOAP with Attachments)."""
from __future__ import annotations
import base64
import quopri
import uuid
from email.message import Message
from email.parser import BytesParser
from typing import Iterable, List, Mapping, Optional, Union

from requests.structures import CaseInsensitiveDict

CRLF = b"\r\n"


class Part:
    """
    One MIME part: content type, extra headers, body bytes and, for
    multipart parts, an ordered list of sub parts.

    The boundary of a multipart part is generated once and reused, so
    encoding the same part twice yields the same bytes.
    """

    def __init__(
        self,
        body: Union[str, bytes, None] = b"",
        content_type: str = "application/octet-stream",
        headers: Optional[Mapping[str, str]] = None,
        parts: Optional[Iterable["Part"]] = None,
        content_id: Optional[str] = None,
    ):
        self.content_type = content_type
        self.headers = CaseInsensitiveDict(headers or {})
        if content_id:
            self.headers["Content-ID"] = f"<{content_id.strip('<>')}>"
        if body is None:
            body = b""
        self.body = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        self.parts: List[Part] = list(parts or [])
        self.sort_order: List[str] = []
        self._boundary: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Part {self.mime_type} parts={len(self.parts)} bytes={len(self.body)}>"

    @property
    def mime_type(self) -> str:
        return self.content_type.split(";")[0].strip().lower()

    @property
    def is_multipart(self) -> bool:
        return self.mime_type.startswith("multipart/")

    @property
    def boundary(self) -> str:
        if self._boundary is None:
            self._boundary = f"----=_Part_{uuid.uuid4().hex}"
        return self._boundary

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def add_part(self, part: "Part") -> None:
        self.parts.append(part)

    def add_content_transfer_encoding(self) -> None:
        try:
            self.body.decode("ascii")
            encoding = "7bit"
        except UnicodeDecodeError:
            encoding = "8bit"
        self.headers.setdefault("Content-Transfer-Encoding", encoding)

    def header_fields(self) -> "CaseInsensitiveDict[str]":
        """Headers of this part as they go on the wire, Content-Type first."""
        content_type = self.content_type
        if self.is_multipart and "boundary=" not in content_type.lower():
            content_type = f'{content_type}; boundary="{self.boundary}"'
        fields = CaseInsensitiveDict({"Content-Type": content_type})
        for name, value in self.headers.items():
            if name.lower() != "content-type":
                fields[name] = value
        return fields

    def sorted_parts(self, order: Optional[Iterable[str]] = None) -> List["Part"]:
        """
        Sub parts ordered by the position of their mime type in ``order``.

        Parts whose type is not listed go last. Ties keep insertion order.
        """
        ranks = [o.split(";")[0].strip().lower() for o in (order or self.sort_order or [])]
        if not ranks:
            return list(self.parts)

        def rank(part: "Part") -> int:
            return ranks.index(part.mime_type) if part.mime_type in ranks else len(ranks)

        return sorted(self.parts, key=rank)

    def encoded_body(self) -> bytes:
        if not self.is_multipart:
            return self._transfer_encoded()
        delimiter = b"--" + self.boundary.encode("ascii")
        out = []
        for part in self.sorted_parts():
            out.append(delimiter + CRLF + part.encoded() + CRLF)
        out.append(delimiter + b"--" + CRLF)
        return b"".join(out)

    def encoded(self) -> bytes:
        lines = [f"{k}: {v}".encode("utf-8") for k, v in self.header_fields().items()]
        return CRLF.join(lines) + CRLF + CRLF + self.encoded_body()

    def _transfer_encoded(self) -> bytes:
        encoding = (self.headers.get("Content-Transfer-Encoding") or "").strip().lower()
        if encoding == "base64":
            return base64.encodebytes(self.body).replace(b"\n", CRLF).rstrip(CRLF)
        if encoding == "quoted-printable":
            return quopri.encodestring(self.body).replace(b"\n", CRLF)
        return self.body

    @classmethod
    def from_message(cls, msg: Message) -> "Part":
        headers = {k: v for k, v in msg.items() if k.lower() != "content-type"}
        content_type = msg.get("Content-Type", "text/plain")
        if msg.is_multipart():
            part = cls(content_type=content_type, headers=headers,
                       parts=[cls.from_message(m) for m in msg.get_payload()])
            part._boundary = msg.get_boundary()
            return part
        return cls(msg.get_payload(decode=True) or b"", content_type, headers)


def parse_multipart(body: bytes, content_type: str) -> Optional[List[Part]]:
    """
    Split a multipart body into parts. Returns None when ``content_type`` is
    not multipart or the body does not split on its boundary.
    """
    if not content_type or "multipart" not in content_type.lower():
        return None
    head = b"Content-Type: " + content_type.encode("ascii", errors="replace") + CRLF + CRLF
    msg = BytesParser().parsebytes(head + body)
    if not msg.is_multipart():
        return None
    payload = msg.get_payload()
    if not payload:
        return None
    return [Part.from_message(m) for m in payload]
