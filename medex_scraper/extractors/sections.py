"""Long-form section parsing for detail pages.

Medical text blocks on a brand page are loose HTML: bold run-in headings,
stray text nodes, paragraphs and bullet lists mixed at one level. These
helpers walk the direct children of a section body and group them into
``title / information / items`` chunks.
"""

from __future__ import annotations

from typing import List, Optional

from bs4 import Tag

from ..dom import (
    LIST_TAGS,
    clean,
    first_meaningful_child,
    is_text_node,
    list_item_texts,
    norm_text,
    text_without,
)
from ..models import DosageGroup, SectionGroup

HEADING_TAGS = ("strong", "b", "h1", "h2", "h3", "h4", "h5", "h6")
BOLD_TAGS = ("strong", "b")
_LISTS_SELECTOR = ", ".join(LIST_TAGS)


def find_section_body(soup, section_id: str, body_class: str = "ac-body") -> Optional[Tag]:
    """Locate the body container that belongs to the ``#section_id`` marker.

    Only the marker's immediate next sibling or a body nested inside the
    marker counts; a marker without either has no body.
    """
    marker = soup.find(id=section_id)
    if marker is None:
        return None
    sibling = marker.find_next_sibling()
    if sibling is not None and body_class in (sibling.get("class") or []):
        return sibling
    return marker.find(class_=body_class)


def _is_inside(node: Tag, ancestor: Tag) -> bool:
    return any(parent is ancestor for parent in node.parents)


def _nested_list_items(node: Tag) -> List[str]:
    items = []
    for lst in node.find_all(LIST_TAGS):
        # Outermost lists only; list_item_texts already covers inner ones
        outer = lst.find_parent(LIST_TAGS)
        if outer is not None and _is_inside(outer, node):
            continue
        items.extend(list_item_texts(lst))
    return items


class _GroupWalker:
    """Accumulates title/prose/items and flushes them into groups."""

    def __init__(self):
        self.groups = []
        self.title: Optional[str] = None
        self.infos: List[str] = []
        self.items: List[str] = []

    @property
    def has_content(self) -> bool:
        return self.title is not None or bool(self.infos) or bool(self.items)

    def flush(self):
        if self.has_content:
            self.groups.append(self.make_group())
        self.title, self.infos, self.items = None, [], []

    def make_group(self):
        return SectionGroup(
            title=self.title,
            information=clean(" ".join(self.infos)) or None,
            items=[i for i in (clean(s) for s in self.items) if i],
        )

    def add_text(self, text: Optional[str]):
        text = clean(text)
        if text:
            self.infos.append(text)

    def add_other(self, node: Tag):
        self.add_text(text_without(node, _LISTS_SELECTOR))
        self.items.extend(_nested_list_items(node))


def parse_section_groups(body: Optional[Tag]) -> List[SectionGroup]:
    if body is None:
        return []
    walker = _GroupWalker()
    for node in body.children:
        if is_text_node(node):
            walker.add_text(str(node))
        elif isinstance(node, Tag):
            if node.name in HEADING_TAGS:
                walker.flush()
                walker.title = norm_text(node)
            elif node.name in LIST_TAGS:
                walker.items.extend(list_item_texts(node))
            else:
                walker.add_other(node)
    walker.flush()

    if not walker.groups:
        full = norm_text(body)
        if full:
            return [SectionGroup(title=None, information=full, items=[])]
    return walker.groups


class _DosageWalker(_GroupWalker):
    def make_group(self):
        return DosageGroup(
            medication_type=self.title,
            information=clean(" ".join(self.infos)) or None,
            instructions=[i for i in (clean(s) for s in self.items) if i],
        )


def _leading_bold(li: Tag) -> Optional[Tag]:
    first = first_meaningful_child(li)
    if isinstance(first, Tag) and first.name in BOLD_TAGS:
        return first
    return None


def _is_per_type_list(list_node: Tag) -> bool:
    return any(_leading_bold(li) is not None for li in list_node.find_all("li", recursive=False))


def _per_type_groups(list_node: Tag) -> List[DosageGroup]:
    groups = []
    for li in list_node.find_all("li", recursive=False):
        bold = _leading_bold(li)
        if bold is None:
            text = norm_text(li)
            if text:
                groups.append(DosageGroup(medication_type=None, information=None, instructions=[text]))
            continue
        nested = li.find(LIST_TAGS)
        rest = text_without(li, _LISTS_SELECTOR)
        bold_text = norm_text(bold)
        if rest and bold_text and rest.startswith(bold_text):
            rest = clean(rest[len(bold_text):].lstrip(":")) or None
        groups.append(DosageGroup(
            medication_type=bold_text,
            information=rest,
            instructions=list_item_texts(nested),
        ))
    return groups


def parse_dosage_groups(body: Optional[Tag]) -> List[DosageGroup]:
    """Like :func:`parse_section_groups`, plus the per-medication-type list rule.

    A list whose items start with their own bold node is one group per item
    (bold text = medication type, nested sub-list = instructions). Any other
    list feeds the instructions of the group being accumulated.
    """
    if body is None:
        return []
    walker = _DosageWalker()
    for node in body.children:
        if is_text_node(node):
            walker.add_text(str(node))
        elif isinstance(node, Tag):
            if node.name in HEADING_TAGS:
                walker.flush()
                walker.title = norm_text(node)
            elif node.name in LIST_TAGS:
                if _is_per_type_list(node):
                    walker.flush()
                    walker.groups.extend(_per_type_groups(node))
                else:
                    walker.items.extend(list_item_texts(node))
            else:
                walker.add_other(node)
    walker.flush()

    if not walker.groups:
        full = norm_text(body)
        if full:
            return [DosageGroup(medication_type=None, information=full, instructions=[])]
    return walker.groups


def extract_answer_lines(container: Optional[Tag]) -> List[str]:
    """Ordered text fragments of an FAQ answer (sentences and list items)."""
    if container is None:
        return []
    parts = []
    for node in container.children:
        if is_text_node(node):
            text = clean(str(node))
            if text:
                parts.append(text)
        elif isinstance(node, Tag):
            if node.name in LIST_TAGS:
                parts.extend(list_item_texts(node))
            else:
                text = text_without(node, _LISTS_SELECTOR)
                if text:
                    parts.append(text)
                parts.extend(_nested_list_items(node))
    return parts
