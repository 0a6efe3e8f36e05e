from __future__ import annotations
import re
from typing import Iterable, Mapping, Protocol, runtime_checkable

FILTERED = "***FILTERED***"


@runtime_checkable
class HeaderRenderer(Protocol):
    """Security header (e.g. WS-Security) that renders itself to XML."""

    def to_xml(self) -> str:
        ...


def sanitize_headers(headers: Mapping[str, str]) -> dict:
    out = {}
    for k, v in headers.items():
        if any(s in k for s in ("Authorization", "Cookie", "Set-Cookie")):
            out[k] = "<redacted>"
        else:
            out[k] = v
    return out


def scrub_xml(xml: str, tags: Iterable[str]) -> str:
    """Replace the text of every element named in ``tags`` (any prefix)."""
    out = xml
    for tag in tags:
        pattern = re.compile(
            rf"(<(?:[\w.-]+:)?{re.escape(tag)}(?:\s[^>]*)?>)(.*?)(</(?:[\w.-]+:)?{re.escape(tag)}\s*>)",
            re.DOTALL,
        )
        out = pattern.sub(lambda m: m.group(1) + FILTERED + m.group(3), out)
    return out
