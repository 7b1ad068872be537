"""Summary-record extraction from paginated brand index pages."""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from ..dom import make_absolute, norm_text
from ..models import SummaryRecord
from .fields import resolve_fields
from .heuristics import split_listing_text

logger = logging.getLogger("medex_scraper")


def _entry_url(entry: Tag, profile) -> Optional[str]:
    link = entry if profile.link_selector is None else entry.select_one(profile.link_selector)
    if link is None:
        return None
    url = make_absolute(link.get("href"), profile.origin)
    if not url or not urlparse(url).path.startswith(profile.link_prefix):
        return None
    return url


def _split_name(text: Optional[str], separator: Optional[str]):
    if not text:
        return None, None
    if not separator or separator not in text:
        return text, None
    primary, _, secondary = text.partition(separator)
    return primary.strip() or None, secondary.strip() or None


def _from_positional(entry: Tag, profile, source_url: str, page: Optional[int]) -> Optional[SummaryRecord]:
    name_node = entry.select_one(profile.name_selector) if profile.name_selector else None
    primary, secondary = _split_name(norm_text(name_node), profile.name_separator)
    if not primary:
        return None

    columns = entry.select(profile.column_selector)
    values = resolve_fields(entry, columns, profile.rules)
    return SummaryRecord(
        primary_name=primary,
        secondary_name=secondary,
        source_url=source_url,
        origin_page=page,
        strength=values.get("strength"),
        generic_name=values.get("generic_name"),
        company=values.get("company"),
        price=values.get("price"),
    )


def _from_labeled(entry: Tag, profile, source_url: str, page: Optional[int]) -> Optional[SummaryRecord]:
    row = entry.select_one(profile.row_selector) if profile.row_selector else entry
    if row is None:
        return _from_free_text(entry, source_url, page)

    columns = row.select(profile.column_selector)
    values = resolve_fields(row, columns, profile.rules)
    name = values.get("primary_name")
    if not name:
        return None
    primary, secondary = _split_name(name, profile.name_separator)
    return SummaryRecord(
        primary_name=primary,
        secondary_name=secondary,
        source_url=source_url,
        origin_page=page,
        strength=values.get("strength"),
        generic_name=values.get("generic_name"),
        company=values.get("company"),
        price=values.get("price"),
        medicine_type=values.get("medicine_type"),
    )


def _from_free_text(entry: Tag, source_url: str, page: Optional[int]) -> Optional[SummaryRecord]:
    result = split_listing_text(entry.get_text(" "))
    if result is None or not result.brand:
        return None
    logger.debug(f"Free-text split ({result.strategy}) for {source_url}")
    return SummaryRecord(
        primary_name=result.brand,
        source_url=source_url,
        origin_page=page,
        strength=result.strength,
        generic_name=result.generic,
        company=result.manufacturer,
    )


EXTRACTORS = {
    "positional": _from_positional,
    "labeled": _from_labeled,
}


def extract_summaries(soup: BeautifulSoup, page_url: str, profile, page: Optional[int] = None) -> List[SummaryRecord]:
    """Return every resolvable listing entry on the page, in document order.

    Entries without a detail link under ``profile.link_prefix`` or without a
    name are dropped. A page with no entries yields an empty list.
    """
    build = EXTRACTORS[profile.kind]
    out = []
    for entry in soup.select(profile.entry_selector):
        source_url = _entry_url(entry, profile)
        if not source_url:
            continue
        record = build(entry, profile, source_url, page)
        if record is not None:
            out.append(record)
    if not out:
        logger.debug(f"No listing entries on {page_url}")
    return out
