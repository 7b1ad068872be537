"""Declarative per-field resolution for listing entries.

A listing entry is a small block of unlabeled columns, some of which carry a
semantic marker (a class or a ``title`` attribute) and some of which don't.
Each :class:`FieldRule` says how to resolve one field: try the semantic
selectors first, then fall back to a positional column, then optionally scan
the remaining columns. A rule that finds nothing yields ``None``; it never
guesses from a column that fails its guards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from bs4 import Tag

from ..dom import norm_text, own_text, text_or_none


@dataclass(frozen=True)
class FieldRule:
    name: str
    selectors: Tuple[str, ...] = ()
    # Attributes to read instead of text (first non-empty wins)
    attrs: Tuple[str, ...] = ()
    # Read only the direct text of the matched node, falling back to full text
    own_text: bool = False
    position: Optional[int] = None
    pattern: Optional[re.Pattern] = None
    # A positional/scanned column containing this selector is never used
    reject_selector: Optional[str] = None
    # Columns matching any of these are never picked by the scan
    skip_selectors: Tuple[str, ...] = ()
    # Reject column texts already assigned to another field
    exclude_assigned: bool = False
    scan: bool = False


def _read_node(node: Tag, rule: FieldRule) -> Optional[str]:
    if rule.attrs:
        for attr in rule.attrs:
            value = text_or_none(node.get(attr))
            if value:
                return value
        return None
    if rule.own_text:
        return own_text(node) or norm_text(node)
    return norm_text(node)


def _column_ok(column: Tag, text: Optional[str], rule: FieldRule, assigned: Dict[str, Optional[str]]) -> bool:
    if not text:
        return False
    if rule.reject_selector and (column.select_one(rule.reject_selector) is not None):
        return False
    if rule.exclude_assigned and text in {v for v in assigned.values() if v}:
        return False
    if rule.pattern is not None and not rule.pattern.search(text):
        return False
    return True


def _matches_any(column: Tag, selectors: Sequence[str]) -> bool:
    classes = set(column.get("class") or [])
    for sel in selectors:
        if sel.startswith(".") and sel[1:] in classes:
            return True
    return False


def resolve_field(entry: Tag, columns: List[Tag], rule: FieldRule,
                  assigned: Dict[str, Optional[str]]) -> Optional[str]:
    for sel in rule.selectors:
        node = entry.select_one(sel)
        if node is None:
            continue
        value = _read_node(node, rule)
        if value:
            return value

    if rule.position is not None and columns:
        idx = rule.position
        if -len(columns) <= idx < len(columns):
            column = columns[idx]
            text = norm_text(column)
            if _column_ok(column, text, rule, assigned):
                return text

    if rule.scan:
        for column in columns:
            if _matches_any(column, rule.skip_selectors):
                continue
            text = norm_text(column)
            if _column_ok(column, text, rule, assigned):
                return text

    return None


def resolve_fields(entry: Tag, columns: List[Tag], rules: Sequence[FieldRule]) -> Dict[str, Optional[str]]:
    """Resolve *rules* in order; later rules see the values of earlier ones."""
    assigned: Dict[str, Optional[str]] = {}
    for rule in rules:
        assigned[rule.name] = resolve_field(entry, columns, rule, assigned)
    return assigned
