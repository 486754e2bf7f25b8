"""
Short-circuiting lookups over game XML.

Every helper returns ``None`` as soon as a step is missing (no element, no
attribute, unparsable number) and leaves the decision between "use a default"
and "raise an issue" to the caller.
"""

from __future__ import annotations

import logging

from lxml import etree

_log = logging.getLogger(__name__)

_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    remove_pis=True,
    huge_tree=False,
)


def parse_xml(data: bytes | str | None, label: str = "document") -> etree._Element | None:
    """Parse *data* strictly and return the root element, or None if malformed."""
    if data is None:
        return None
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        return etree.fromstring(data, _PARSER)
    except (etree.XMLSyntaxError, ValueError) as exc:
        _log.debug("Could not parse %s: %s", label, exc)
        return None


def children(node: etree._Element, tag: str | None = None) -> list[etree._Element]:
    """Direct element children, optionally filtered by tag name."""
    return [c for c in node if isinstance(c.tag, str) and (tag is None or c.tag == tag)]


def first(node: etree._Element, tag: str) -> etree._Element | None:
    """First element named *tag* in document order, *node* itself included."""
    return next(node.iter(tag), None)


def first_text(node: etree._Element, tag: str) -> str | None:
    """Text of the first *tag* element; "" when it exists but is empty."""
    found = first(node, tag)
    if found is None:
        return None
    return found.text or ""


def first_attr(node: etree._Element, tag: str, attr: str) -> str | None:
    found = first(node, tag)
    if found is None:
        return None
    return found.get(attr)


def to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def to_uint(value: str | None) -> int | None:
    number = to_int(value)
    if number is None or number < 0:
        return None
    return number


def to_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None


def is_true(value: str | None) -> bool:
    return value is not None and value.strip().lower() == "true"
