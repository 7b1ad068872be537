"""Small BeautifulSoup helpers shared by the extractors.

Every helper accepts ``None`` in place of a node and degrades to ``None`` or
an empty list, so callers can chain lookups without guarding each one.
"""

from __future__ import annotations

import copy
import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

_WS = re.compile(r"\s+")

IMAGE_ATTRS = ("src", "data-src", "data-lazy")
LIST_TAGS = ["ul", "ol"]


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def clean(text: Optional[str]) -> str:
    """Collapse whitespace (including non-breaking spaces) and trim."""
    if not text:
        return ""
    return _WS.sub(" ", text.replace("\u00a0", " ")).strip()


def text_or_none(text: Optional[str]) -> Optional[str]:
    cleaned = clean(text)
    return cleaned or None


def norm_text(node: Optional[Tag]) -> Optional[str]:
    """Normalized text content of *node*, or ``None`` when absent/blank."""
    if node is None:
        return None
    return text_or_none(node.get_text())


def is_text_node(node) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def own_text(node: Optional[Tag]) -> Optional[str]:
    """Text of *node* with every child element removed (direct strings only)."""
    if node is None:
        return None
    return text_or_none("".join(str(s) for s in node.children if is_text_node(s)))


def text_without(node: Optional[Tag], selector: str) -> Optional[str]:
    """Text of a copy of *node* after removing descendants matching *selector*."""
    if node is None:
        return None
    clone = copy.copy(node)
    for child in clone.select(selector):
        child.decompose()
    return norm_text(clone)


def list_item_texts(list_node: Optional[Tag]) -> List[str]:
    """Texts of every ``li`` under *list_node*, in document order."""
    if list_node is None:
        return []
    out = []
    for li in list_node.find_all("li"):
        text = norm_text(li)
        if text:
            out.append(text)
    return out


def make_absolute(src: Optional[str], origin: str) -> Optional[str]:
    if not src:
        return None
    src = src.strip()
    if not src:
        return None
    if re.match(r"^https?://", src, re.IGNORECASE):
        return src
    return urljoin(origin.rstrip("/") + "/", src)


def image_source(img: Optional[Tag], origin: str) -> Optional[str]:
    """Absolute URL of *img*, preferring ``src`` over lazy-load attributes."""
    if img is None:
        return None
    for attr in IMAGE_ATTRS:
        value = img.get(attr)
        if value and value.strip():
            return make_absolute(value, origin)
    return None


def select_first(node: Optional[Tag], *selectors: str) -> Optional[Tag]:
    """First match of the first selector that matches anything."""
    if node is None:
        return None
    for sel in selectors:
        found = node.select_one(sel)
        if found is not None:
            return found
    return None


def first_meaningful_child(node: Tag):
    """First child that is an element or a non-blank text node."""
    for child in node.children:
        if isinstance(child, Tag):
            return child
        if is_text_node(child) and clean(str(child)):
            return child
    return None
