"""Convert aggregation service XML responses into nested dicts."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET


_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL = re.compile(r"([a-z0-9])([A-Z])")


def snake_case(tag: str) -> str:
    """Convert an XML tag such as `InstitutionDetail` to `institution_detail`.

    Args:
        tag: local element name, without namespace.

    Returns:
        The snake_case key.

    """
    return _CAMEL.sub(r"\1_\2", _ACRONYM.sub(r"\1_\2", tag)).lower()


def parse_xml(text: str) -> dict[str, object] | None:
    """Parse an XML document into nested dicts keyed by snake_case tag names.

    Namespaces and attributes are dropped. Repeated sibling elements become a
    list, leaf elements become their stripped text (or `None` when empty).
    The root element is kept as the single top-level key.

    Args:
        text: the response body.

    Returns:
        Parsed structure, or `None` for an empty body.

    Raises:
        xml.etree.ElementTree.ParseError: if `text` is not well-formed XML.

    """
    if not text or not text.strip():
        return None
    root = ET.fromstring(text)  # noqa: S314
    return {_key(root): _value(root)}


def _key(element: ET.Element) -> str:
    return snake_case(element.tag.rpartition("}")[2])


def _value(element: ET.Element) -> object:
    children = list(element)
    if not children:
        text = (element.text or "").strip()
        return text or None
    grouped: dict[str, list[object]] = {}
    for child in children:
        grouped.setdefault(_key(child), []).append(_value(child))
    return {k: v[0] if len(v) == 1 else v for k, v in grouped.items()}
