"""
Mapping <-> XML conversion.

``dict_to_xml`` renders ordered mappings into XML fragments for request
headers and bodies. ``xml_to_dict`` and ``element_to_dict`` turn response
XML into plain dicts keyed by snake_cased local names, with repeated
siblings collected into lists and multiRef ``href`` links resolved.
"""
from __future__ import annotations
import datetime as dt
import io
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, Optional, Tuple

from .namespaces import XSI

XSI_NIL = f"{{{XSI}}}nil"

_SNAKE_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SNAKE_WORD = re.compile(r"([a-z\d])([A-Z])")


def escape(val: str) -> str:
    return (
        str(val)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _scalar(obj: Any) -> str:
    if isinstance(obj, bool):
        return "true" if obj else "false"
    if isinstance(obj, (dt.datetime, dt.date)):
        return obj.isoformat()
    return f"{obj}"


def _tag(key: str, ns: Optional[str]) -> str:
    return f"{ns}:{key}" if ns and ":" not in key else key


def _attributes(obj: dict) -> str:
    return "".join(f' {k[1:]}="{escape(_scalar(v))}"' for k, v in obj.items() if k.startswith("@"))


def dict_to_xml(obj: Any, key: Optional[str] = None, ns: Optional[str] = None) -> str:
    """
    Render ``obj`` as XML, preserving mapping order.

    Lists repeat the element, ``None`` gives an empty element and keys
    starting with ``@`` become attributes of the enclosing element. ``ns``
    prefixes every tag that is not already qualified.
    """
    if isinstance(obj, list):
        return "".join(dict_to_xml(v, key, ns) for v in obj)
    if key is None:
        if isinstance(obj, dict):
            return "".join(dict_to_xml(v, k, ns) for k, v in obj.items() if not k.startswith("@"))
        return "" if obj is None else escape(_scalar(obj))
    tag = _tag(key, ns)
    if obj is None:
        return f"<{tag}></{tag}>"
    if isinstance(obj, dict):
        return f"<{tag}{_attributes(obj)}>{dict_to_xml(obj, None, ns)}</{tag}>"
    return f"<{tag}>{escape(_scalar(obj))}</{tag}>"


def snakecase(name: str) -> str:
    name = _SNAKE_ACRONYM.sub(r"\1_\2", name)
    name = _SNAKE_WORD.sub(r"\1_\2", name)
    return name.replace(".", "_").replace("-", "_").lower()


def local_name(tag: str) -> str:
    return tag.split("}")[-1]


def parse(data) -> Tuple[ET.Element, Dict[str, str]]:
    """Parse XML bytes, returning the root and the prefixes it declares."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    namespaces: Dict[str, str] = {}
    it = ET.iterparse(io.BytesIO(data), events=("start-ns",))
    for _event, (prefix, uri) in it:
        if prefix:
            namespaces.setdefault(prefix, uri)
    return it.root, namespaces


def collect_refs(root: ET.Element) -> Dict[str, ET.Element]:
    return {el.get("id"): el for el in root.iter() if el.get("id") is not None}


def element_to_dict(el: ET.Element, refs: Optional[Dict[str, ET.Element]] = None, _seen: Tuple[str, ...] = ()):
    href = el.get("href")
    if refs and href and href.startswith("#") and len(el) == 0 and href not in _seen:
        target = refs.get(href[1:])
        if target is not None:
            return element_to_dict(target, refs, _seen + (href,))

    if el.get(XSI_NIL) in ("true", "1"):
        return None

    attrs = {
        snakecase(local_name(k)): v
        for k, v in el.attrib.items()
        if not k.startswith(f"{{{XSI}}}")
    }
    children = list(el)
    if not children:
        text = (el.text or "").strip()
        if text:
            return text
        return attrs or None

    bucket: Dict[str, Any] = {}
    for c in children:
        k = snakecase(local_name(c.tag))
        v = element_to_dict(c, refs, _seen)
        if k in bucket:
            if not isinstance(bucket[k], list):
                bucket[k] = [bucket[k]]
            bucket[k].append(v)
        else:
            bucket[k] = v

    for k, v in attrs.items():
        bucket.setdefault(k, v)
    return bucket


def xml_to_dict(xml) -> dict:
    """Whole document as a dict; malformed input gives ``{}``."""
    try:
        root, _ = parse(xml)
    except ET.ParseError:
        return {}
    return {snakecase(local_name(root.tag)): element_to_dict(root, collect_refs(root))}
